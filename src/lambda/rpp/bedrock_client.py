"""
Bedrock client for the lesson-plan generation calls
Uses AWS Bedrock Claude (model id or inference profile ARN)
"""

import json
import logging
import os
import random
import time
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from rpp.config import AWS_REGION
from rpp.core.errors import GenerationConfigError

logger = logging.getLogger(__name__)

cloudwatch = boto3.client('cloudwatch', region_name=AWS_REGION)
bedrock_runtime = boto3.client("bedrock-runtime", region_name=AWS_REGION)

# Model configuration
# -------------------
#   LLM_MODEL_ID:          primary modelId / ARN for every call
#   LLM_FALLBACK_MODEL_ID: used once the primary hits its daily token quota
#   LLM_MAX_RETRIES:       throttling retries before giving up
# Without LLM_MODEL_ID the Claude Sonnet 4.5 inference profile is derived
# from AWS_ACCOUNT_ID and the region.
PRIMARY_LLM_MODEL_ID_ENV = os.getenv("LLM_MODEL_ID")
FALLBACK_LLM_MODEL_ID_ENV = os.getenv("LLM_FALLBACK_MODEL_ID")
MAX_RETRIES = int(os.getenv("LLM_MAX_RETRIES", "3"))
RETRY_BASE_DELAY_SECONDS = 2.0

METRIC_NAMESPACE = 'AKD/Custom'


def resolve_model_id(model_id: Optional[str] = None) -> str:
    """
    Pick the model id: explicit argument, then LLM_MODEL_ID, then the
    inference profile built from AWS_ACCOUNT_ID.

    Raises:
        GenerationConfigError: If none of them is available
    """
    if model_id:
        return model_id
    if PRIMARY_LLM_MODEL_ID_ENV:
        return PRIMARY_LLM_MODEL_ID_ENV

    account_id = os.getenv("AWS_ACCOUNT_ID")
    if not account_id:
        raise GenerationConfigError(
            "AWS_ACCOUNT_ID environment variable not set. Configure it on the Lambda "
            "function or set LLM_MODEL_ID to choose the model."
        )
    region = bedrock_runtime.meta.region_name
    return (
        f"arn:aws:bedrock:{region}:{account_id}:inference-profile/"
        "us.anthropic.claude-sonnet-4-5-20250929-v1:0"
    )


def invoke_claude(
    messages: List[Dict[str, Any]],
    system: Optional[str] = None,
    max_tokens: int = 8192,
    temperature: float = 0.4,
    model_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Send one conversation to a Claude model on Bedrock.

    Rate throttling is retried with jittered exponential backoff, at most
    LLM_MAX_RETRIES times. Hitting the daily token quota switches once to
    LLM_FALLBACK_MODEL_ID when it is configured.

    Args:
        messages: Conversation turns, ``{"role", "content"}`` dicts
        system: System prompt
        max_tokens: Output token cap
        temperature: Sampling temperature (0-1)
        model_id: modelId/ARN overriding LLM_MODEL_ID

    Returns:
        Dict with 'content' (text), 'usage' and 'model_used'
    """
    model_id = resolve_model_id(model_id)

    request_body: Dict[str, Any] = {
        "anthropic_version": "bedrock-2023-05-31",
        "max_tokens": max_tokens,
        "temperature": temperature,
        "messages": messages,
    }
    if system:
        request_body["system"] = system

    attempt = 0
    while True:
        try:
            return _invoke_once(model_id, request_body)
        except ClientError as e:
            if _error_code(e) != 'ThrottlingException':
                logger.error(f"Bedrock API error for {model_id}: {_error_code(e)} - {e}")
                raise

            daily_quota = _is_daily_token_limit(e)
            _publish_throttling_metric(model_id, daily_quota)

            if daily_quota:
                if not FALLBACK_LLM_MODEL_ID_ENV or model_id == FALLBACK_LLM_MODEL_ID_ENV:
                    logger.error(f"Daily token quota exhausted for {model_id} and no fallback model left")
                    raise
                logger.warning(f"Daily token quota exhausted for {model_id}; retrying on {FALLBACK_LLM_MODEL_ID_ENV}")
                result = invoke_claude(
                    messages=messages,
                    system=system,
                    max_tokens=max_tokens,
                    temperature=temperature,
                    model_id=FALLBACK_LLM_MODEL_ID_ENV,
                )
                result['model_switched'] = True
                result['primary_model'] = model_id
                return result

            if attempt >= MAX_RETRIES:
                logger.error(f"Bedrock still throttling after {attempt + 1} attempts")
                raise

            delay = RETRY_BASE_DELAY_SECONDS * (2 ** attempt) + random.uniform(0, 1.0)
            attempt += 1
            logger.warning(f"Bedrock throttled (attempt {attempt}/{MAX_RETRIES + 1}); sleeping {delay:.1f}s")
            time.sleep(delay)


def _invoke_once(model_id: str, request_body: Dict[str, Any]) -> Dict[str, Any]:
    logger.debug(f"Invoking Bedrock model_id={model_id}")
    response = bedrock_runtime.invoke_model(modelId=model_id, body=json.dumps(request_body))

    # Streaming body: read exactly once
    raw = response['body'].read()
    try:
        payload = json.loads(raw.decode('utf-8'))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValueError(f"Invalid response from Bedrock: {e}") from e

    text = "".join(
        block.get('text', '')
        for block in payload.get('content') or []
        if block.get('type', 'text') == 'text'
    )
    usage = payload.get('usage', {})
    return {
        'content': text,
        'usage': {
            'input_tokens': usage.get('input_tokens', 0),
            'output_tokens': usage.get('output_tokens', 0),
        },
        'model_used': model_id,
    }


def _error_code(error: ClientError) -> str:
    return error.response.get('Error', {}).get('Code', '')


def _is_daily_token_limit(error: ClientError) -> bool:
    return 'too many tokens per day' in str(error).lower()


def _publish_throttling_metric(model_id: str, is_daily_token_limit: bool) -> None:
    """Count throttling in CloudWatch; never fails the request."""
    try:
        cloudwatch.put_metric_data(
            Namespace=METRIC_NAMESPACE,
            MetricData=[
                {
                    'MetricName': 'BedrockThrottlingExceptions',
                    'Value': 1,
                    'Unit': 'Count',
                    'Dimensions': [
                        {'Name': 'ModelId', 'Value': model_id.split('/')[-1]},
                        {
                            'Name': 'QuotaType',
                            'Value': 'daily_token_limit' if is_daily_token_limit else 'rate_limit',
                        },
                    ],
                }
            ],
        )
    except (BotoCoreError, ClientError) as metric_error:
        logger.warning(f"Failed to publish throttling metric: {metric_error}")
