"""Application configuration and environment settings"""
from typing import Literal, Optional
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class EndpointSettings(BaseModel):
    """HTTP collaborator settings"""
    reputation_url: str = Field(..., description="Reputation service base URL")
    token_mint_url: str = Field(..., description="Token minting service base URL")
    timeout_seconds: float = Field(..., description="Per-request timeout")

class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    # Database
    DEPLOYMENT: Literal["production", "staging", "local"] = Field("local", description="Deployment selecting the database")
    DB_PASSWORD: str = Field("", description="Database password")
    DATABASE_URL: Optional[str] = Field(None, description="Full SQLAlchemy URL, overrides DEPLOYMENT")

    # External collaborators
    REPUTATION_SOURCE: Literal["votes", "api"] = Field("votes", description="Where the reputation score comes from")
    REPUTATION_API_URL: str = Field("http://localhost:3000/api", description="Reputation service base URL")
    REPUTATION_TIMEOUT_SECONDS: float = Field(5.0, description="Reputation request timeout")
    TOKEN_MINT_API_URL: str = Field("http://localhost:3000/api", description="Token minting service base URL")
    FT_TOKEN_ID: Optional[str] = Field(None, description="Fungible reward token ID on the ledger")

    # Earnings model
    TOKEN_DECIMALS: int = Field(0, ge=0, description="Decimals of the reward token (0 mints whole tokens)")
    DEFAULT_RATING: float = Field(1.0, ge=0.0, description="Rating used when no reputation score is available")
    ARTIST_SHARE: float = Field(0.5, ge=0.0, le=1.0, description="Fraction of each claim credited to artists")
    DISTRIBUTE_ARTIST_EARNINGS: bool = Field(True, description="Credit artists on every claim")
    CLAIM_MAX_RETRIES: int = Field(3, ge=1, description="Attempts before a contended claim gives up")

    LOG_LEVEL: str = Field("INFO", description="Root log level for the CLI")

    @property
    def endpoints(self) -> EndpointSettings:
        """Get HTTP collaborator settings as a separate model"""
        return EndpointSettings(
            reputation_url=self.REPUTATION_API_URL,
            token_mint_url=self.TOKEN_MINT_API_URL,
            timeout_seconds=self.REPUTATION_TIMEOUT_SECONDS
        )

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True
    )

settings = Settings()

# Reputation scores are nominally bounded to this range
MAX_REPUTATION_SCORE = 100
