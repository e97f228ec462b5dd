import os
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./inft_bindings.db"
    )

    # Registry metadata
    REGISTRY_NAME: str = "Intelligent NFT v2"
    REGISTRY_SYMBOL: str = "iNFT"

    # Linking policy defaults (amounts in the collateral token's smallest unit)
    LINK_PRICE: int = 2_000 * 10 ** 18
    LINK_FEE: int = 0
    FEE_DESTINATION: Optional[str] = None

    # Ids below the seed are reserved for privileged direct mints
    NEXT_ID_SEED: int = 0x2_0000_0000

    LOG_LEVEL: str = "INFO"


settings = Settings()
