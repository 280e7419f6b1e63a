from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = "sqlite:///./assistant.db"
    log_level: str = "INFO"
    log_json: bool = False

    # chain ids are keys into RPC_URLS
    rpc_urls: str = (
        '{"84532":"https://sepolia.base.org",'
        '"8453":"https://mainnet.base.org",'
        '"11155111":"https://ethereum-sepolia-rpc.publicnode.com"}'
    )
    rpc_timeout_s: int = 20
    payment_chain_id: int = 84532
    ens_chain_id: int = 11155111

    # payments
    usdc_address_base_sepolia: str = "0x036CbD53842c5426634e7929541eC2318f3dCF7e"
    usdc_address_base_mainnet: str = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
    payment_min_amount: str = "0.001"
    payment_max_amount: str = "10"
    allowed_tokens: str = "ETH,USDC"
    gasless_enabled: bool = False
    paymaster_url: str = ""
    paymaster_method: str = "pm_sponsorTransaction"

    # server-side signer; when empty, writes return unsigned txs for the wallet
    signer_private_key: str = ""

    # ENS (Sepolia deployments)
    ens_registry_address: str = "0x00000000000C2E074eC69A0dFb2997BA6C7d2e1e"
    ens_base_registrar_address: str = "0x57f1887a8bf19b14fc0df6fd9b2acc9af147ea85"
    ens_controller_address: str = "0xfb3cE5D01e0f33f41DbB39035dB9745962F1f968"
    ens_reverse_registrar_address: str = "0xA0a1AbcDAe1a2a4A2EF8e9113Ff0e02DD81DC0C6"
    ens_public_resolver_address: str = "0xE99638b40E4Fff0129D56f03b55b6bbC4BBE49b5"
    ens_universal_resolver_address: str = "0x3c85752a5d47DD09D677C645Ff2A938B38fbFEbA"
    ens_name_wrapper_address: str = "0x0635513f179D50A207757E05759CbD106d7dFcE8"

    # LLM
    llm_enabled: bool = True
    llm_provider: str = "openai"
    llm_base_url: str = "https://openrouter.ai/api/v1"
    llm_api_key: str = ""
    llm_model: str = "openai/gpt-4o"
    llm_temperature: float = 0.7
    llm_max_tokens: int = 1000
    llm_timeout_s: int = 30
    llm_history_turns: int = 6

    # chat sessions + activity feed
    session_ttl_s: int = 1200
    activity_limit: int = 50

    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout_s: int = 30
    db_pool_recycle_s: int = 1800

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def DATABASE_URL(self) -> str:
        return self.database_url

    @property
    def RPC_URLS(self) -> str:
        return self.rpc_urls

    @property
    def PAYMENT_CHAIN_ID(self) -> int:
        return self.payment_chain_id

    @property
    def ENS_CHAIN_ID(self) -> int:
        return self.ens_chain_id

    @property
    def ALLOWED_TOKENS(self) -> list[str]:
        return [t.strip().upper() for t in self.allowed_tokens.split(",") if t.strip()]

    @property
    def SIGNER_PRIVATE_KEY(self) -> str:
        return self.signer_private_key

    @property
    def GASLESS_ENABLED(self) -> bool:
        return self.gasless_enabled and bool(self.paymaster_url)

    @property
    def LLM_ENABLED(self) -> bool:
        return self.llm_enabled

    @property
    def LLM_PROVIDER(self) -> str:
        return self.llm_provider

    @property
    def LLM_MODEL(self) -> str:
        return self.llm_model

    @property
    def LLM_API_KEY(self) -> str:
        return self.llm_api_key

    @property
    def SESSION_TTL_S(self) -> int:
        return self.session_ttl_s


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader (process-level).
    """
    return Settings()
