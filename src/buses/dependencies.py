from fastapi import Request

from src.buses.client import BusInventoryClient

def get_inventory_client(request: Request) -> BusInventoryClient:
    return request.app.state.inventory_client
