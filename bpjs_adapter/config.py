"""Environment configuration for the BPJS and SATUSEHAT clients.

Credentials are read once from the process environment (and a local ``.env``
file). Missing values stay ``None`` so that client construction can report
exactly which variables are absent.
"""
from __future__ import annotations
import os
from dotenv import load_dotenv
from pydantic import BaseModel
from .errors import ConfigurationError

load_dotenv()


def _flag(name: str, default: str = "1") -> bool:
    return os.getenv(name, default).strip().lower() not in ("0", "false", "no", "off")


_BPJS_ENV = {
    "cons_id": "BPJS_CONS_ID",
    "secret_key": "BPJS_SECRET_KEY",
    "user_key": "BPJS_USER_KEY",
    "base_url": "BPJS_BASE_URL",
}


class BPJSConfig(BaseModel):
    cons_id: str | None = None
    secret_key: str | None = None
    user_key: str | None = None
    base_url: str | None = None
    enabled: bool = True
    # VClaim 2.0 nests the insert payload under "t_sep"
    sep_insert_t_sep: bool = False

    @classmethod
    def from_env(cls) -> "BPJSConfig":
        return cls(
            cons_id=os.getenv("BPJS_CONS_ID"),
            secret_key=os.getenv("BPJS_SECRET_KEY"),
            user_key=os.getenv("BPJS_USER_KEY"),
            base_url=os.getenv("BPJS_BASE_URL"),
            enabled=_flag("BPJS_ENABLED"),
            sep_insert_t_sep=_flag("BPJS_SEP_INSERT_T_SEP", "0"),
        )

    def missing(self) -> list[str]:
        return [env for field, env in _BPJS_ENV.items() if not getattr(self, field)]

    def require_complete(self) -> None:
        """Raise ConfigurationError if any gateway credential is unset."""
        missing = self.missing()
        if missing:
            raise ConfigurationError(
                "BPJS integration is enabled but not configured; missing " + ", ".join(missing)
            )


class SatuSehatConfig(BaseModel):
    client_id: str | None = None
    client_secret: str | None = None
    base_url: str | None = None

    @classmethod
    def from_env(cls) -> "SatuSehatConfig":
        return cls(
            client_id=os.getenv("SATUSEHAT_CLIENT_ID"),
            client_secret=os.getenv("SATUSEHAT_CLIENT_SECRET"),
            base_url=os.getenv("SATUSEHAT_BASE_URL"),
        )

    def require_complete(self) -> None:
        missing = [
            env
            for env, value in (
                ("SATUSEHAT_CLIENT_ID", self.client_id),
                ("SATUSEHAT_CLIENT_SECRET", self.client_secret),
                ("SATUSEHAT_BASE_URL", self.base_url),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError("SATUSEHAT client is not configured; missing " + ", ".join(missing))


CLINIC_API_KEY = os.getenv("CLINIC_API_KEY", "")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "json")
