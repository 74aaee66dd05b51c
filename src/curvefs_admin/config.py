"""Environment-based configuration for the CurveFS admin client."""

from pydantic_settings import BaseSettings


def split_addrs(value: str) -> list[str]:
    """Split a comma separated address list, dropping blanks."""
    return [addr.strip() for addr in value.split(",") if addr.strip()]


class Settings(BaseSettings):
    """CurveFS admin configuration.

    All settings can be overridden via environment variables with
    CURVEFS_ prefix. For example:
        CURVEFS_MDS_ADDR=10.0.0.1:6700,10.0.0.2:6700
        CURVEFS_RPC_TIMEOUT=5
    """

    # Control plane
    mds_addr: str = "127.0.0.1:6700,127.0.0.1:6701,127.0.0.1:6702"
    rpc_timeout: float = 10.0  # seconds, per MDS / metaserver call

    # Metric endpoints (/vars/*)
    http_timeout: float = 0.5  # seconds, per metric fetch

    # Copyset health policy
    copyset_replicas: int = 3
    max_log_gap: int = 100  # raft log entries a follower may trail by

    model_config = {"env_prefix": "CURVEFS_"}

    @property
    def mds_addrs(self) -> list[str]:
        return split_addrs(self.mds_addr)


settings = Settings()
