"""
Centralized application configuration
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings"""

    # API Settings
    API_TITLE: str = "Produce Store API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Storefront and admin API for the farm produce store"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database (Supabase Postgres)
    DATABASE_URL: str = ""
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""
    SUPABASE_JWT_SECRET: str = ""
    SUPABASE_STORAGE_BUCKET: str = "product-images"

    # CORS - Can be string (comma-separated) or JSON array
    # Example: "http://localhost:5173,https://yourdomain.com" or '["http://localhost:5173"]'
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:5173,http://localhost:8080"

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return ["http://localhost:5173"]

        # Try JSON parse first (for array format)
        import json
        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        # Fall back to comma-separated string
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    # Store origin for delivery distance
    STORE_LAT: float = 21.114435
    STORE_LNG: float = 79.110042
    STORE_PINCODE: str = "440024"
    STORE_CITY: str = "Nagpur"
    STORE_NAME: str = "California Farms India"

    # Delivery pricing (site_settings values take precedence when set)
    DELIVERY_RATE_PER_KM: float = 10.0
    MAX_DELIVERY_DISTANCE_KM: float = 50.0
    FREE_DELIVERY_THRESHOLD: float = 399.0
    DELIVERY_CACHE_TTL_SECONDS: int = 3600

    # Geocoding / routing
    NOMINATIM_URL: str = "https://nominatim.openstreetmap.org"
    OSRM_URL: str = "https://router.project-osrm.org"
    GEO_USER_AGENT: str = "DeliveryApp/1.0"

    # Payments
    RAZORPAY_KEY_ID: str = ""
    RAZORPAY_KEY_SECRET: str = ""
    RAZORPAY_API_URL: str = "https://api.razorpay.com/v1"

    # Email
    RESEND_API_KEY: str = ""
    RESEND_API_URL: str = "https://api.resend.com"
    EMAIL_FROM: str = "California Farms <onboarding@resend.dev>"
    ADMIN_EMAIL: str = ""

    # Order OTP
    OTP_EXPIRY_MINUTES: int = 10
    OTP_RATE_LIMIT_SECONDS: int = 60
    OTP_MAX_FAILED_ATTEMPTS: int = 5

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
