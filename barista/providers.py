"""
LLM Providers
=============
Builds the barista's chat model from environment variables.

Provider auto-detection priority: Groq → Azure OpenAI → OpenAI
Override with LLM_PROVIDER=groq|azure|openai to force a specific provider.

Every model is built with temperature 0 where the deployment accepts it, and a
request timeout of LLM_TIMEOUT_SECONDS (default 30). Retries are left to the
provider client; the agent loop itself never retries a failed call.
"""
import logging
import os
import re

logger = logging.getLogger(__name__)

PROVIDERS = ("groq", "azure", "openai")
DEFAULT_TIMEOUT_SECONDS = 30.0


def detect_provider() -> str:
    """
    Return which LLM provider to use.

    LLM_PROVIDER wins when it names a known provider; otherwise the first
    provider with an API key in the environment.
    """
    forced = os.getenv("LLM_PROVIDER", "").lower()
    if forced in PROVIDERS:
        return forced
    if os.getenv("GROQ_API_KEY"):
        return "groq"
    if os.getenv("AZURE_OPENAI_API_KEY"):
        return "azure"
    return "openai"


def _timeout() -> float:
    return float(os.getenv("LLM_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS))


def _groq():
    from langchain_groq import ChatGroq
    return ChatGroq(
        model=os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile"),
        api_key=os.getenv("GROQ_API_KEY"),
        temperature=0,
        timeout=_timeout(),
    )


def _accepts_temperature(deployment: str) -> bool:
    """o-series reasoning deployments (o1, o3-mini, ...) reject an explicit temperature."""
    return re.match(r"o\d", deployment.lower()) is None


def _azure():
    from langchain_openai import AzureChatOpenAI
    deployment = os.getenv("AZURE_OPENAI_DEPLOYMENT", "gpt-4o")
    kwargs = {"temperature": 0} if _accepts_temperature(deployment) else {}
    return AzureChatOpenAI(
        azure_endpoint=os.getenv("AZURE_OPENAI_ENDPOINT"),
        azure_deployment=deployment,
        api_version=os.getenv("AZURE_OPENAI_API_VERSION", "2024-12-01-preview"),
        api_key=os.getenv("AZURE_OPENAI_API_KEY"),
        timeout=_timeout(),
        **kwargs,
    )


def _openai():
    from langchain_openai import ChatOpenAI
    return ChatOpenAI(
        model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        api_key=os.getenv("OPENAI_API_KEY"),
        temperature=0,
        timeout=_timeout(),
    )


_BUILDERS = {"groq": _groq, "azure": _azure, "openai": _openai}


def build_llm(provider: str | None = None):
    """Return a LangChain chat model for `provider` (auto-detected when None)."""
    provider = provider or detect_provider()
    if provider not in _BUILDERS:
        raise ValueError(f"Unknown LLM provider {provider!r}; expected one of {PROVIDERS}")
    logger.info("[LLM] Provider: %s", provider)
    return _BUILDERS[provider]()
