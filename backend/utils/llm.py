import json
import urllib.request
import urllib.error
from typing import Optional, Dict, Any, Tuple
from sqlmodel import Session
from config import settings
from infra.database.connection import get_setting_value
from domain.exceptions import LLMError
import ollama
from utils.logger import get_logger

logger = get_logger(__name__)

# プロバイダー定義
PROVIDER_OPENAI = "openai"
PROVIDER_ANTHROPIC = "anthropic"
PROVIDER_GOOGLE = "google"
PROVIDER_OLLAMA = "ollama"

DEFAULT_MODELS = {
    PROVIDER_OPENAI: "gpt-4o",
    PROVIDER_ANTHROPIC: "claude-3-haiku-20240307",
    PROVIDER_GOOGLE: "gemini-1.5-flash",
    PROVIDER_OLLAMA: "llama3.2",
}

def get_llm_config(session: Session) -> Tuple[str, str, str, str]:
    """
    DB設定 (なければ環境変数) からLLM構成を取得する。
    Returns: (provider, model_name, api_key, endpoint)
    endpoint は OpenAI互換APIのベースURL、Ollama の場合はホスト。
    """
    provider = get_setting_value(session, "llm_provider", settings.LLM_PROVIDER)
    model_name = get_setting_value(session, "llm_model", settings.LLM_MODEL)

    if not model_name:
        model_name = DEFAULT_MODELS.get(provider, DEFAULT_MODELS[PROVIDER_OLLAMA])

    api_key = ""
    endpoint = ""
    if provider == PROVIDER_OPENAI:
        api_key = get_setting_value(session, "openai_api_key", settings.OPENAI_API_KEY)
        endpoint = get_setting_value(session, "openai_base_url", settings.OPENAI_BASE_URL)
    elif provider == PROVIDER_ANTHROPIC:
        api_key = get_setting_value(session, "anthropic_api_key", settings.ANTHROPIC_API_KEY)
    elif provider == PROVIDER_GOOGLE:
        api_key = get_setting_value(session, "google_api_key", settings.GOOGLE_API_KEY)
    else:
        endpoint = get_setting_value(session, "ollama_host", settings.OLLAMA_HOST)

    return provider, model_name, api_key, endpoint

def _call_openai(api_key: str, base_url: str, model: str, prompt: str, system_prompt: Optional[str], max_tokens: int) -> str:
    url = f"{base_url.rstrip('/')}/chat/completions"
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {api_key}"
    }
    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": prompt})
    data = {
        "model": model,
        "messages": messages,
        "max_completion_tokens": max_tokens
    }
    return _execute_request(url, headers, data, parse_openai_response)

def _call_anthropic(api_key: str, model: str, prompt: str, system_prompt: Optional[str], max_tokens: int) -> str:
    url = "https://api.anthropic.com/v1/messages"
    headers = {
        "content-type": "application/json",
        "x-api-key": api_key,
        "anthropic-version": "2023-06-01"
    }
    data = {
        "model": model,
        "messages": [{"role": "user", "content": prompt}],
        "max_tokens": max_tokens,
        "temperature": 0.8
    }
    if system_prompt:
        data["system"] = system_prompt
    return _execute_request(url, headers, data, parse_anthropic_response)

def _call_google(api_key: str, model: str, prompt: str, system_prompt: Optional[str], max_tokens: int) -> str:
    url = f"https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent?key={api_key}"
    headers = {"Content-Type": "application/json"}
    data = {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {
            "temperature": 0.8,
            "maxOutputTokens": max_tokens
        }
    }
    if system_prompt:
        data["systemInstruction"] = {"parts": [{"text": system_prompt}]}
    return _execute_request(url, headers, data, parse_google_response)

def _call_ollama(host: str, model: str, prompt: str, system_prompt: Optional[str]) -> str:
    try:
        client = ollama.Client(host=host)
        if system_prompt:
            response = client.generate(model=model, prompt=prompt, system=system_prompt)
        else:
            response = client.generate(model=model, prompt=prompt)
        return response['response'].strip()
    except Exception as e:
        logger.error(f"Ollama Error ({host}): {e}")
        raise LLMError(f"Error calling Ollama: {e}") from e

def _execute_request(url: str, headers: Dict[str, str], data: Dict[str, Any], parser_func) -> str:
    try:
        req = urllib.request.Request(
            url,
            data=json.dumps(data).encode('utf-8'),
            headers=headers
        )
        with urllib.request.urlopen(req, timeout=60) as response:
            response_body = response.read().decode('utf-8')
            result = json.loads(response_body)
            parsed_text = parser_func(result)

            if not parsed_text:
                logger.warning(f"Empty response parsed from {url}. Raw body: {response_body}")

            return parsed_text

    except urllib.error.HTTPError as e:
        error_body = e.read().decode('utf-8')
        logger.error(f"LLM API HTTP Error ({url}): Status {e.code}\nBody: {error_body}")
        raise LLMError(f"API_ERROR: {e.code} - {error_body}") from e

    except (urllib.error.URLError, TimeoutError, ValueError) as e:
        logger.error(f"LLM API Connection Error ({url}): {e}")
        raise LLMError(f"CONNECTION_ERROR: {e}") from e

# --- Response Parsers ---
def parse_openai_response(data):
    try:
        return (data['choices'][0]['message']['content'] or "").strip()
    except (KeyError, IndexError, TypeError):
        logger.error(f"OpenAI Parse Error: Unexpected format: {json.dumps(data)}")
        return ""

def parse_anthropic_response(data):
    try:
        return data['content'][0]['text'].strip()
    except (KeyError, IndexError, TypeError):
        logger.error(f"Anthropic Parse Error: Unexpected format: {json.dumps(data)}")
        return ""

def parse_google_response(data):
    try:
        if 'candidates' in data and data['candidates']:
            candidate = data['candidates'][0]
            if 'content' in candidate and 'parts' in candidate['content']:
                return candidate['content']['parts'][0]['text'].strip()
            elif 'finishReason' in candidate:
                logger.warning(f"Gemini blocked response. Finish Reason: {candidate['finishReason']}")
                return ""

        logger.error(f"Gemini Parse Error: No content in candidates. Data: {json.dumps(data)}")
        return ""
    except (KeyError, IndexError, TypeError) as e:
        logger.error(f"Gemini Parse Exception: {e}, Data: {data}")
        return ""

# --- Main Public API ---

def generate_text(
    session: Session,
    prompt: str,
    system_prompt: Optional[str] = None,
    max_tokens: int = 1000,
    model_name: Optional[str] = None
) -> str:
    """
    設定されたプロバイダーでテキストを生成する。
    通信エラー・APIエラーは LLMError を送出し、空文字はそのまま返す (判断は呼び出し側)。
    """
    provider, config_model_name, api_key, endpoint = get_llm_config(session)

    target_model = model_name if model_name else config_model_name

    logger.info(f"Generating text with {provider} ({target_model})")

    if provider != PROVIDER_OLLAMA and not api_key:
        err_msg = f"API Key for {provider} is not set."
        logger.error(err_msg)
        raise LLMError(err_msg)

    if provider == PROVIDER_OPENAI:
        return _call_openai(api_key, endpoint, target_model, prompt, system_prompt, max_tokens)
    elif provider == PROVIDER_ANTHROPIC:
        return _call_anthropic(api_key, target_model, prompt, system_prompt, max_tokens)
    elif provider == PROVIDER_GOOGLE:
        return _call_google(api_key, target_model, prompt, system_prompt, max_tokens)
    return _call_ollama(endpoint, target_model, prompt, system_prompt)

def check_llm_status(session: Session) -> str:
    provider, model_name, api_key, endpoint = get_llm_config(session)

    if provider == PROVIDER_OLLAMA:
        try:
            client = ollama.Client(host=endpoint)
            models_response = client.list()

            # Handle both dict (old) and object (new) response from ollama library
            model_list = []
            if hasattr(models_response, 'models'):
                model_list = models_response.models
            elif isinstance(models_response, dict):
                model_list = models_response.get('models', [])

            model_names = []
            for m in model_list:
                if hasattr(m, 'model'):
                    model_names.append(m.model)
                elif isinstance(m, dict):
                    model_names.append(m.get('name') or m.get('model'))

            base_model = model_name.split(':')[0]
            found = any(base_model in m for m in model_names if m)

            status_msg = f"Ollama Connected ({model_name} at {endpoint})"
            if not found:
                status_msg += f" - Warning: Model '{model_name}' not found."
            return status_msg
        except Exception as e:
            return f"Ollama Connection Failed: {str(e)}"
    else:
        if not api_key:
            return f"{provider.capitalize()} API Key Missing"
        return f"{provider.capitalize()} Configured (Model: {model_name})"
