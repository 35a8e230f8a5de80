from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        env_prefix="WALLET_AUTH_",
        case_sensitive=False,
        extra="ignore"
    )

    log_level: str = Field(default="INFO", description="Logging level")

    # Chain context used when hashing user operations
    chain_id: int = Field(default=1, description="Chain id bound into user operation hashes")
    entry_point_address: str = Field(
        default="0x5FF137D4b0FDCD49DcA30c7CF57E578a026d2789",
        description="EntryPoint contract address bound into user operation hashes",
        validation_alias=AliasChoices(
            "wallet_auth_entry_point_address",
            "entry_point_address",
            "ENTRYPOINT_ADDRESS",
        ),
    )

    # Predicate engine limits
    predicate_max_depth: int = Field(
        default=8,
        ge=1,
        description="Maximum nesting depth of an allowed-arguments rule tree",
    )
    predicate_max_nodes: int = Field(
        default=256,
        ge=1,
        description="Maximum number of nodes in a single allowed-arguments rule tree",
    )

    # Registry pagination
    registry_page_limit: int = Field(
        default=100,
        ge=1,
        description="Upper bound on identifiers returned by a single registry page",
    )

    # Session usage accounting
    paymaster_verification_gas_multiplier: int = Field(
        default=3,
        ge=1,
        description="Verification gas multiplier applied when a paymaster sponsors the operation",
    )


settings = Settings()
