from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Bypasses RLS; used by the seed script

    # Identity provider (RS256 tokens, JWKS published at https://<domain>/.well-known/jwks.json)
    auth_domain: str = ""
    auth_audience: str = ""
    auth_issuer: Optional[str] = None  # Defaults to https://<auth_domain>/
    auth_claims_namespace: str = "https://reefing.com/"
    jwks_cache_ttl_seconds: int = 600
    jwks_requests_per_minute: int = 5

    # AWS S3 (will read from uppercase env vars automatically)
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "us-east-1"
    s3_bucket_name: Optional[str] = None
    signed_url_ttl_seconds: int = 3600

    # Uploads
    max_upload_bytes: int = int(4.5 * 1024 * 1024)  # serverless request body ceiling
    max_photos_per_upload: int = 10
    allowed_image_types: str = "image/jpeg,image/png,image/webp,image/gif"

    # App
    app_name: str = "reefing-api"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    cors_origin_regex: Optional[str] = None  # e.g. r"https://.*\.vercel\.app"
    rate_limit: str = "100 per 15 minutes"  # slowapi format
    upload_rate_limit: str = "20 per 15 minutes"
    rate_limit_enabled: bool = True
    create_sample_aquariums: bool = True

    @property
    def jwt_issuer(self) -> str:
        return self.auth_issuer or f"https://{self.auth_domain}/"

    @property
    def jwks_url(self) -> str:
        return f"https://{self.auth_domain}/.well-known/jwks.json"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def get_allowed_image_types(self) -> List[str]:
        return [t.strip().lower() for t in self.allowed_image_types.split(",") if t.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
