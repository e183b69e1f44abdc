from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.config import settings
from src.database import Base, engine
from src.logger_config import logger
from src.auth import router as auth_router
from src.auth.otp_service import OtpService
from src.auth.rate_limiter import RateLimiter
from src.auth.sms_service import SmsService
from src.users import router as users_router
from src.payments import router as payments_router
from src.payments.gateway import RazorpayGateway
from src.buses import router as buses_router
from src.buses.client import BusInventoryClient
from src.buses.exceptions import ProviderError
from src.buses.schemas import SeatLayoutResponse
from src.seats.exceptions import MalformedLayout

@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("{} started ({})", settings.PROJECT_NAME, settings.ENVIRONMENT)
    if not settings.sms_configured:
        logger.warning("SMS gateway is not configured; OTP delivery will fail")
    if not settings.payments_configured:
        logger.warning("Razorpay is not configured; payment endpoints will return 503")
    yield
    await app.state.inventory_client.aclose()

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    description="Sancharie Bus Booking API",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Shared services; tests replace these on app.state
app.state.otp_service = OtpService()
app.state.rate_limiter = RateLimiter()
app.state.sms_service = SmsService()
app.state.payment_gateway = RazorpayGateway()
app.state.inventory_client = BusInventoryClient()

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(MalformedLayout)
async def malformed_layout_handler(request: Request, exc: MalformedLayout):
    logger.warning("Malformed seat layout on {}: {}", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=SeatLayoutResponse(available=False, message="No seats available").model_dump(mode="json")
    )

@app.exception_handler(ProviderError)
async def provider_error_handler(request: Request, exc: ProviderError):
    logger.error("Bus provider error on {}: {} (code {})", request.url.path, exc.message, exc.error_code)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": exc.message, "error_code": exc.error_code}
    )

# Include routers
app.include_router(
    auth_router,
    prefix="/auth",
    tags=["Authentication"]
)

app.include_router(
    users_router,
    prefix="/user",
    tags=["User Account"]
)

app.include_router(
    payments_router,
    prefix="/payment",
    tags=["Payments"]
)

app.include_router(
    buses_router,
    prefix="/bus",
    tags=["Bus Search & Booking"]
)

@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": "Sancharie Bus Booking API",
        "version": "1.0.0",
        "docs": "/docs"
    }

@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "sms_configured": settings.sms_configured,
        "payments_configured": settings.payments_configured
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
