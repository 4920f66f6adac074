import json
from typing import List, Union
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_list(v: Union[str, List[str], None], *, name: str) -> List[str]:
    if v is None:
        return []
    if isinstance(v, str):
        if not v.strip():
            return []
        if v.startswith("["):
            parsed = json.loads(v)
            if not isinstance(parsed, list):
                raise ValueError(f"{name} JSON value must be a list")
            return [str(i).strip() for i in parsed if str(i).strip()]
        return [i.strip() for i in v.split(",") if i.strip()]
    if isinstance(v, list):
        return [str(i).strip() for i in v if str(i).strip()]
    raise ValueError(v)


class Settings(BaseSettings):
    app_name: str = "OrderDesk Backend"
    env: str = "dev"
    base_url: str = "http://localhost:5000"

    # DATABASE
    database_url: str = "sqlite:///./orderdesk.db"
    db_pool_size: int = Field(default=10, ge=1, le=100)
    db_max_overflow: int = Field(default=20, ge=0, le=200)
    db_pool_timeout_seconds: int = Field(default=30, ge=1, le=300)
    db_pool_recycle_seconds: int = Field(default=1800, ge=30, le=86_400)
    auto_create_tables: bool = True

    # STORAGE BACKENDS
    store_backend: str = "database"
    ledger_backend: str = "database"

    # PAYMENTS
    payment_provider: str = "stripe"
    stripe_secret_key: str | None = None
    stripe_publishable_key: str | None = None
    stripe_webhook_secret: str | None = None
    stripe_api_version: str | None = None
    stub_webhook_secret: str | None = None
    provider_timeout_seconds: int = Field(default=20, ge=1, le=120)
    checkout_payment_method_types: List[str] = Field(default_factory=lambda: ["card", "link", "klarna"])
    checkout_default_description: str = "Project V8 Order"
    checkout_product_description: str = "Custom development services by DriftV8"
    donation_product_description: str = "Support Project V8 development"
    paypal_client_id: str | None = None
    paypal_client_secret: str | None = None
    paypal_env: str = "sandbox"

    # EMAIL
    smtp_host: str | None = None
    smtp_port: int = Field(default=587, ge=1, le=65535)
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_sender_email: str | None = None
    smtp_reply_to_email: str | None = None
    smtp_use_starttls: bool = True
    smtp_use_ssl: bool = False
    email_sender_name: str = "Project V8"
    business_notification_emails: List[str] = Field(default_factory=list)
    contact_inbox_email: str | None = None

    # AI PRICE ESTIMATION
    ai_api_key: str | None = None
    ai_base_url: str | None = "https://api.groq.com/openai/v1"
    ai_model: str = "llama-3.3-70b-versatile"
    ai_temperature: float = 0.7
    ai_max_price: int = Field(default=500, ge=1)

    # MANUAL PAYMENTS
    cashapp_cashtag: str = "$DriftV8"
    crypto_wallet_address: str | None = None
    crypto_network: str = "Bitcoin (BTC)"

    # CORS
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    cors_origin_regex: str | None = None

    @field_validator("cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        return _split_list(v, name="CORS_ORIGINS")

    @field_validator("business_notification_emails", "checkout_payment_method_types", mode="before")
    @classmethod
    def assemble_string_lists(cls, v: Union[str, List[str]]) -> List[str]:
        return _split_list(v, name="list setting")

    @field_validator(
        "stripe_secret_key",
        "stripe_publishable_key",
        "stripe_webhook_secret",
        "stripe_api_version",
        "stub_webhook_secret",
        "paypal_client_id",
        "paypal_client_secret",
        "smtp_host",
        "smtp_username",
        "smtp_password",
        "smtp_sender_email",
        "smtp_reply_to_email",
        "contact_inbox_email",
        "ai_api_key",
        "ai_base_url",
        "crypto_wallet_address",
        mode="before",
    )
    @classmethod
    def normalize_optional_strings(cls, value: str | None) -> str | None:
        if value is None:
            return None
        cleaned = str(value).strip()
        return cleaned or None

    @field_validator("store_backend", "ledger_backend", mode="after")
    @classmethod
    def validate_backend(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"database", "memory"}:
            raise ValueError("Storage backend must be 'database' or 'memory'")
        return normalized

    @field_validator("payment_provider", "paypal_env", mode="after")
    @classmethod
    def normalize_lower(cls, value: str) -> str:
        return value.strip().lower()

    @model_validator(mode="after")
    def validate_production_safety(self) -> "Settings":
        env_value = self.env.lower().strip()
        if env_value not in {"prod", "production"}:
            return self

        if "*" in self.cors_origins:
            raise ValueError("CORS_ORIGINS cannot contain '*' in production")
        if self.cors_origin_regex:
            raise ValueError("CORS_ORIGIN_REGEX cannot be set in production")

        if self.payment_provider == "stub":
            raise ValueError("PAYMENT_PROVIDER=stub is not allowed in production")
        if self.stripe_secret_key and not self.stripe_webhook_secret:
            raise ValueError("STRIPE_WEBHOOK_SECRET is required when Stripe is configured in production")

        if self.smtp_use_ssl and self.smtp_use_starttls:
            raise ValueError("Set only one of SMTP_USE_SSL or SMTP_USE_STARTTLS in production")

        return self

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        enable_decoding=False,
    )


settings = Settings()
