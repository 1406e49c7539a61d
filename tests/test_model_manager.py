import pytest

from mealmate.core.errors import RequestFailure
from mealmate.core.model_manager import DEFAULT_MODEL_ID, ModelManager, _strip_fence
from mealmate.core.schemas import WeekMenu


@pytest.fixture
def manager(tmp_path, monkeypatch):
    for name in ["GEMINI_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY"]:
        monkeypatch.delenv(name, raising=False)
    return ModelManager(state_dir=str(tmp_path))


class TimingOutProvider:
    def generate(self, model_id, prompt, schema, system_instruction=None):
        raise TimeoutError("read timed out")

    def describe_image(self, model_id, prompt, image_bytes, mime_type="image/jpeg"):
        raise TimeoutError("read timed out")


class EchoProvider:
    def generate(self, model_id, prompt, schema, system_instruction=None):
        return '{"meals": []}'

    def describe_image(self, model_id, prompt, image_bytes, mime_type="image/jpeg"):
        return f"{len(image_bytes)} bytes as {mime_type}"


def test_no_keys_means_no_providers(manager):
    assert manager.providers == {}
    assert all(m["locked"] for m in manager.get_available_models())


def test_unconfigured_provider_is_a_request_failure(manager):
    with pytest.raises(RequestFailure):
        manager.generate("plan please", WeekMenu)
    with pytest.raises(RequestFailure):
        manager.describe_image("what is this", b"img")


def test_timeouts_become_request_failures(manager):
    manager.providers["google"] = TimingOutProvider()
    with pytest.raises(RequestFailure) as exc:
        manager.generate("plan please", WeekMenu)
    assert isinstance(exc.value.__cause__, TimeoutError)


def test_routes_to_provider_of_selected_model(manager):
    manager.providers["openai"] = EchoProvider()
    manager.set_model("gpt-4o-mini")
    assert manager.get_model_id() == "gpt-4o-mini"
    assert manager.generate("plan please", WeekMenu) == '{"meals": []}'
    assert manager.describe_image("what", b"abcd", mime_type="image/png") == "4 bytes as image/png"


def test_model_selection_persists(manager, tmp_path):
    assert manager.get_model_id() == DEFAULT_MODEL_ID
    manager.set_model("gemini-2.5-pro")
    assert ModelManager(state_dir=str(tmp_path)).get_model_id() == "gemini-2.5-pro"
    with pytest.raises(ValueError):
        manager.set_model("no-such-model")


def test_resolve_key(manager, monkeypatch):
    monkeypatch.setenv("MY_GEMINI", "AIza-secret")
    assert manager._resolve_key("${MY_GEMINI}") == "AIza-secret"
    assert manager._resolve_key("MY_GEMINI") == "AIza-secret"
    assert manager._resolve_key("${MISSING_VAR}") is None
    assert manager._resolve_key("UNSET_POINTER") is None
    assert manager._resolve_key("sk-raw-key") == "sk-raw-key"
    assert manager._resolve_key("") is None


def test_strip_fence():
    assert _strip_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert _strip_fence('{"a": 1}') == '{"a": 1}'
    assert _strip_fence(None) is None


def test_corrupt_config_falls_back_to_default_model(manager, tmp_path):
    with open(tmp_path / "model_config.json", "w") as f:
        f.write("{broken")
    assert manager.load_config() == {}
    assert manager.get_model_id() == DEFAULT_MODEL_ID


def test_unreadable_config_is_a_request_failure(manager, monkeypatch):
    def unreadable():
        raise OSError("disk gone")

    monkeypatch.setattr(manager, "load_config", unreadable)
    with pytest.raises(RequestFailure):
        manager.generate("plan please", WeekMenu)
    with pytest.raises(RequestFailure):
        manager.describe_image("what", b"img")


def test_timeout_reaches_every_client(tmp_path, monkeypatch):
    import anthropic
    import openai
    from mealmate.core import model_manager as mm_module

    received = {}

    class RecordingClient:
        def __init__(self, name):
            self.name = name

        def __call__(self, **kwargs):
            received[self.name] = kwargs
            return object()

    monkeypatch.setattr(mm_module.genai, "Client", RecordingClient("google"))
    monkeypatch.setattr(openai, "OpenAI", RecordingClient("openai"))
    monkeypatch.setattr(anthropic, "Anthropic", RecordingClient("anthropic"))

    manager = ModelManager(
        state_dir=str(tmp_path),
        timeout=12.5,
        user_keys={"google": "AIza-test", "openai": "sk-test", "anthropic": "sk-ant-test"},
    )
    assert set(manager.providers) == {"google", "openai", "anthropic"}
    assert received["google"]["http_options"].timeout == 12500
    assert received["openai"]["timeout"] == 12.5
    assert received["anthropic"]["timeout"] == 12.5
