from __future__ import annotations

from typing import Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.runnables import Runnable

from app_core.errors import ConfigurationError
from config.settings import Settings

JSON_OBJECT_FORMAT = {"type": "json_object"}


def build_chat_model(
    config: Settings,
    model: Optional[str] = None,
    max_tokens: Optional[int] = None,
    temperature: Optional[float] = None,
) -> BaseChatModel:
    """
    Chat model for one operation.

    Provider is selected via the LLM_PROVIDER env variable:
      - "openai"  (default) — OpenAI API, requires OPENAI_API_KEY
      - "bedrock"           — AWS Bedrock / Claude via boto3

    Unset generation parameters fall back to the evaluation defaults.
    Streaming is disabled so token usage arrives with the response.
    """
    max_tokens = max_tokens if max_tokens is not None else config.evaluation_max_tokens
    temperature = temperature if temperature is not None else config.evaluation_temperature

    if config.provider == "bedrock":
        return _build_bedrock(config, model or config.bedrock_model_id, max_tokens, temperature)
    return _build_openai(config, model or config.openai_model_id, max_tokens, temperature)


def with_json_output(llm: BaseChatModel, config: Settings) -> Runnable:
    """
    Constrain the model to emit a bare JSON object where the provider supports
    it. Bedrock has no response-format switch; the system prompt carries the
    constraint there.
    """
    if config.provider == "bedrock":
        return llm
    return llm.bind(response_format=JSON_OBJECT_FORMAT)


def _build_openai(
    config: Settings, model: str, max_tokens: int, temperature: float
) -> BaseChatModel:
    from langchain_openai import ChatOpenAI

    if not config.openai_api_key:
        raise ConfigurationError("API key not configured")

    return ChatOpenAI(
        model=model,
        api_key=config.openai_api_key,
        temperature=temperature,
        max_tokens=max_tokens,
        max_retries=0,
        streaming=False,
    )


def _build_bedrock(
    config: Settings, model: str, max_tokens: int, temperature: float
) -> BaseChatModel:
    from langchain_aws import ChatBedrock
    import boto3

    # Explicit session so .env credentials take priority over cached SSO sessions
    if config.aws_profile:
        session = boto3.Session(profile_name=config.aws_profile)
    elif config.aws_access_key_id and config.aws_secret_access_key:
        session = boto3.Session(
            aws_access_key_id=config.aws_access_key_id,
            aws_secret_access_key=config.aws_secret_access_key,
            region_name=config.aws_default_region,
        )
    else:
        session = boto3.Session()

    return ChatBedrock(
        model_id=model,
        region_name=config.aws_default_region,
        model_kwargs={
            "temperature": temperature,
            "max_tokens": max_tokens,
            "anthropic_version": "bedrock-2023-05-31",
        },
        streaming=False,
        client=session.client("bedrock-runtime", region_name=config.aws_default_region),
    )
