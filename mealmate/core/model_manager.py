import os
import re
import json
import base64
import logging
import google.genai as genai

from mealmate.core.errors import RequestFailure

logger = logging.getLogger(__name__)

DEFAULT_MODEL_ID = "gemini-2.5-flash"
DEFAULT_TIMEOUT = 60

_FENCE = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$")


def _strip_fence(text):
    # Some models wrap JSON in a markdown fence even when asked for JSON
    if text is None:
        return None
    return _FENCE.sub("", text).strip()


def _schema_hint(schema):
    return json.dumps(schema.model_json_schema(by_alias=True))


# --- PROVIDER WRAPPERS ---

class GeminiProvider:
    def __init__(self, api_key, timeout=DEFAULT_TIMEOUT):
        self.client = genai.Client(
            api_key=api_key,
            http_options=genai.types.HttpOptions(timeout=int(timeout * 1000)),
        )

    def generate(self, model_id, prompt, schema, system_instruction=None):
        response = self.client.models.generate_content(
            model=model_id,
            contents=prompt,
            config=genai.types.GenerateContentConfig(
                system_instruction=system_instruction,
                response_mime_type="application/json",
                response_schema=schema,
            ),
        )
        return _strip_fence(response.text)

    def describe_image(self, model_id, prompt, image_bytes, mime_type="image/jpeg"):
        response = self.client.models.generate_content(
            model=model_id,
            contents=[
                genai.types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                prompt,
            ],
        )
        return response.text


class OpenAIProvider:
    def __init__(self, api_key, base_url=None, timeout=DEFAULT_TIMEOUT):
        from openai import OpenAI
        self.client = OpenAI(api_key=api_key, base_url=base_url, timeout=timeout)

    def generate(self, model_id, prompt, schema, system_instruction=None):
        system = (system_instruction or "You are a helpful meal planning assistant.")
        system += f"\nReply with a single JSON object matching this JSON schema: {_schema_hint(schema)}"
        completion = self.client.chat.completions.create(
            model=model_id,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
        )
        return _strip_fence(completion.choices[0].message.content)

    def describe_image(self, model_id, prompt, image_bytes, mime_type="image/jpeg"):
        data_url = f"data:{mime_type};base64,{base64.b64encode(image_bytes).decode('ascii')}"
        completion = self.client.chat.completions.create(
            model=model_id,
            messages=[{
                "role": "user",
                "content": [
                    {"type": "image_url", "image_url": {"url": data_url}},
                    {"type": "text", "text": prompt},
                ],
            }],
        )
        return completion.choices[0].message.content


class AnthropicProvider:
    def __init__(self, api_key, timeout=DEFAULT_TIMEOUT):
        from anthropic import Anthropic
        self.client = Anthropic(api_key=api_key, timeout=timeout)

    def generate(self, model_id, prompt, schema, system_instruction=None):
        # Anthropic Tool Use for structured output
        tool_name = "submit_data"
        tools = [{
            "name": tool_name,
            "description": "Submit structured data matching the requested schema.",
            "input_schema": schema.model_json_schema(by_alias=True),
        }]
        kwargs = {"system": system_instruction} if system_instruction else {}
        message = self.client.messages.create(
            model=model_id,
            max_tokens=4096,
            tools=tools,
            tool_choice={"type": "tool", "name": tool_name},
            messages=[{"role": "user", "content": prompt}],
            **kwargs,
        )
        for content in message.content:
            if content.type == "tool_use" and content.name == tool_name:
                return json.dumps(content.input)
        return None

    def describe_image(self, model_id, prompt, image_bytes, mime_type="image/jpeg"):
        message = self.client.messages.create(
            model=model_id,
            max_tokens=1024,
            messages=[{
                "role": "user",
                "content": [
                    {"type": "image", "source": {
                        "type": "base64",
                        "media_type": mime_type,
                        "data": base64.b64encode(image_bytes).decode('ascii'),
                    }},
                    {"type": "text", "text": prompt},
                ],
            }],
        )
        return "".join(c.text for c in message.content if c.type == "text")


AVAILABLE_MODELS = [
    # Google
    {"id": "gemini-2.5-flash", "name": "Gemini 2.5 Flash", "provider": "google", "recommended": True},
    {"id": "gemini-2.5-flash-lite", "name": "Gemini 2.5 Flash-Lite", "provider": "google"},
    {"id": "gemini-2.5-pro", "name": "Gemini 2.5 Pro", "provider": "google"},
    {"id": "gemini-3-flash-preview", "name": "Gemini 3 Flash (Preview)", "provider": "google"},
    # OpenAI
    {"id": "gpt-4o", "name": "GPT-4o", "provider": "openai"},
    {"id": "gpt-4o-mini", "name": "GPT-4o Mini", "provider": "openai", "recommended": True},
    # Anthropic
    {"id": "claude-3-5-sonnet-20241022", "name": "Claude 3.5 Sonnet", "provider": "anthropic"},
    {"id": "claude-3-5-haiku-20241022", "name": "Claude 3.5 Haiku", "provider": "anthropic"},
]


class ModelManager:
    def __init__(self, state_dir=None, model_id=None, timeout=DEFAULT_TIMEOUT, original_env=None, user_keys=None):
        self.state_dir = state_dir or os.path.join(os.getcwd(), 'state')
        self.config_path = os.path.join(self.state_dir, 'model_config.json')
        self.default_model_id = model_id or DEFAULT_MODEL_ID
        self.timeout = timeout
        self.original_env = original_env
        self.user_keys = user_keys or {}

        # Load keys - User Preferences > Current Env > Fallback Env
        def get_initial(name, user_key_type):
            val = self.user_keys.get(user_key_type)
            if val:
                return val
            val = os.environ.get(name)
            if not val or val == f"${{{name}}}":
                if self.original_env and name in self.original_env:
                    return self.original_env[name]
            return val

        self.keys = {
            "google": get_initial("GEMINI_API_KEY", "google"),
            "openai": get_initial("OPENAI_API_KEY", "openai"),
            "anthropic": get_initial("ANTHROPIC_API_KEY", "anthropic"),
        }

        provider_classes = {
            "google": GeminiProvider,
            "openai": OpenAIProvider,
            "anthropic": AnthropicProvider,
        }
        self.providers = {}
        for name, cls in provider_classes.items():
            resolved = self._resolve_key(self.keys[name])
            if not resolved:
                continue
            try:
                self.providers[name] = cls(resolved, timeout=self.timeout)
            except Exception as e:
                logger.error("Error initializing %s provider: %s", name, e)

    def _resolve_key(self, key_string):
        """Resolves `${VAR}` pointers and bare env-var names to their values."""
        if not key_string:
            return None

        def get_env(name):
            if self.original_env and self.original_env.get(name):
                return self.original_env[name]
            return os.environ.get(name)

        match = re.search(r'\$\{(.+?)\}', key_string)
        if match:
            env_name = match.group(1)
            val = get_env(env_name)
            if not val or val == key_string or val == f'${{{env_name}}}':
                logger.debug("Resolution failed for pointer %s", key_string)
                return None
            return val

        if re.match(r'^[A-Z0-9_]+$', key_string):
            val = get_env(key_string)
            if val and val != key_string:
                return val
            # Gemini keys start with AI
            if not key_string.startswith("AI"):
                logger.debug("String '%s' looks like a pointer but is not set", key_string)
                return None

        return key_string

    def load_config(self):
        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                    if isinstance(data, dict):
                        return data
            except (OSError, ValueError) as e:
                logger.warning("Could not read %s, using defaults: %s", self.config_path, e)
        return {}

    def save_config(self, config):
        os.makedirs(self.state_dir, exist_ok=True)
        with open(self.config_path, 'w') as f:
            json.dump(config, f, indent=4)

    def get_available_models(self):
        models = []
        for m in AVAILABLE_MODELS:
            m = dict(m)
            m["locked"] = m["provider"] not in self.providers
            m["selected"] = m["id"] == self.get_model_id()
            models.append(m)
        return models

    def set_model(self, model_id):
        if not any(m["id"] == model_id for m in AVAILABLE_MODELS):
            raise ValueError(f"Unknown model: {model_id}")
        config = self.load_config()
        config['model'] = model_id
        self.save_config(config)

    def get_model_id(self):
        return self.load_config().get('model', self.default_model_id)

    def _get_provider_for_model(self, model_id):
        target_model = next((m for m in AVAILABLE_MODELS if m["id"] == model_id), None)
        if not target_model:
            raise ValueError(f"Unknown model: {model_id}")
        provider_name = target_model["provider"]
        if provider_name not in self.providers:
            raise ValueError(f"Provider {provider_name} is not configured (missing API key).")
        return self.providers[provider_name]

    def generate(self, prompt, schema, system_instruction=None, model_id=None):
        """Structured JSON request. Returns the raw JSON text; any failure becomes RequestFailure."""
        try:
            model_id = model_id or self.get_model_id()
            provider = self._get_provider_for_model(model_id)
            logger.info("Generating structured response using %s...", model_id)
            return provider.generate(model_id, prompt, schema, system_instruction=system_instruction)
        except Exception as e:
            logger.warning("Generation with %s failed: %s", model_id, e)
            raise RequestFailure(str(e)) from e

    def describe_image(self, prompt, image_bytes, mime_type="image/jpeg", model_id=None):
        try:
            model_id = model_id or self.get_model_id()
            provider = self._get_provider_for_model(model_id)
            logger.info("Describing image using %s...", model_id)
            return provider.describe_image(model_id, prompt, image_bytes, mime_type=mime_type)
        except Exception as e:
            logger.warning("Image request with %s failed: %s", model_id, e)
            raise RequestFailure(str(e)) from e
