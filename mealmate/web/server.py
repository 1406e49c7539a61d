import os
import sys
import logging
from flask import Flask, current_app, jsonify, request
from dotenv import load_dotenv

# CAPTURE ORIGINAL SYSTEM ENVIRONMENT before load_dotenv shadows it
original_env = os.environ.copy()

# Ensure app modules are found
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '../../')))

from mealmate.config import get_config
from mealmate.core.agent import MealMateAgent
from mealmate.core.model_manager import ModelManager
from mealmate.core.schemas import IngredientOrigin

load_dotenv()

logger = logging.getLogger(__name__)


def create_app(config_name=None, agent=None):
    app = Flask(__name__)
    cfg = get_config(config_name)
    app.config.from_object(cfg)
    app.secret_key = cfg.SECRET_KEY

    if agent is None:
        model_manager = ModelManager(
            state_dir=cfg.STATE_DIR,
            model_id=cfg.MODEL_ID,
            timeout=cfg.AI_TIMEOUT,
            original_env=original_env,
        )
        agent = MealMateAgent(cfg.STATE_DIR, model_manager=model_manager)
    app.extensions['mealmate_agent'] = agent

    register_routes(app)
    return app


def get_agent():
    return current_app.extensions['mealmate_agent']


def _dump(models):
    return [m.model_dump(mode="json", by_alias=True) for m in models]


def respond(payload=None, code=200, status="ok"):
    agent = get_agent()
    body = {"status": status, "screen": agent.screen.value, "notice": agent.pop_notice()}
    body.update(payload or {})
    return jsonify(body), code


def error(message, code):
    return respond({"message": message}, code=code, status="error")


def register_routes(app):

    @app.route('/health')
    def health():
        return jsonify({"status": "ok"})

    # --- PREFERENCES ---
    @app.route('/api/preferences', methods=['GET', 'POST'])
    def preferences():
        manager = get_agent().preferences_manager
        if request.method == 'POST':
            data = request.get_json(silent=True) or {}
            try:
                if 'diet' in data:
                    manager.set_diet(data['diet'])
                if 'baseTime' in data:
                    manager.set_base_time(data['baseTime'])
            except ValueError as e:
                return error(str(e), 400)
        prefs = manager.load_preferences()
        return respond({"preferences": prefs.model_dump(mode="json", by_alias=True)})

    @app.route('/api/preferences/busy_day', methods=['POST'])
    def busy_day():
        manager = get_agent().preferences_manager
        data = request.get_json(silent=True) or {}
        try:
            if data.get('minutes') is None:
                prefs = manager.clear_busy_day_override(data.get('day'))
            else:
                prefs = manager.set_busy_day_override(data.get('day'), data['minutes'])
        except ValueError as e:
            return error(str(e), 400)
        return respond({"preferences": prefs.model_dump(mode="json", by_alias=True)})

    @app.route('/api/login', methods=['POST'])
    def login():
        data = request.get_json(silent=True) or {}
        prefs = get_agent().preferences_manager.sign_in(data.get('name'))
        return respond({"preferences": prefs.model_dump(mode="json", by_alias=True)})

    @app.route('/api/logout', methods=['POST'])
    def logout():
        prefs = get_agent().preferences_manager.sign_out()
        return respond({"preferences": prefs.model_dump(mode="json", by_alias=True)})

    @app.route('/api/profile')
    def profile():
        return respond({"profile": get_agent().profile_summary()})

    # --- PANTRY ---
    @app.route('/api/pantry')
    def pantry():
        items = get_agent().inventory_manager.search(request.args.get('q'))
        return respond({"pantry": _dump(items)})

    @app.route('/api/pantry/suggested')
    def suggested():
        return respond({"suggested": get_agent().inventory_manager.get_suggested()})

    @app.route('/api/pantry/toggle', methods=['POST'])
    def toggle_pantry():
        agent = get_agent()
        data = request.get_json(silent=True) or {}
        name = (data.get('name') or '').strip()
        if not name:
            return error("Missing ingredient name", 400)
        try:
            origin = IngredientOrigin(data.get('origin', IngredientOrigin.MANUAL.value))
        except ValueError as e:
            return error(str(e), 400)
        change = agent.toggle_pantry_item(name, origin=origin)
        return respond({"added": change.added, "pantry": _dump(agent.inventory_manager.load_pantry())})

    @app.route('/api/pantry/add', methods=['POST'])
    def add_pantry():
        agent = get_agent()
        data = request.get_json(silent=True) or {}
        change = agent.add_custom_item(data.get('name'))
        if change is None:
            return error("Nothing to add", 400)
        return respond({
            "added": change.added,
            "alreadyPresent": not change.added,
            "pantry": _dump(agent.inventory_manager.load_pantry()),
        })

    # --- SCAN ---
    @app.route('/api/scan', methods=['POST'])
    def scan():
        agent = get_agent()
        upload = request.files.get('image')
        if upload is None:
            return error("Missing image", 400)
        mime_type = upload.mimetype or 'image/jpeg'
        if mime_type not in current_app.config['ALLOWED_IMAGE_TYPES']:
            return error(f"Unsupported image type {mime_type}", 400)
        items = agent.capture_and_scan(upload.read(), mime_type=mime_type)
        if items is None and agent.last_request_discarded:
            return respond({"discarded": True}, code=409, status="discarded")
        if items is None:
            return error("Scan failed", 502)
        return respond({"detected": items})

    @app.route('/api/scan/confirm', methods=['POST'])
    def confirm_scan():
        data = request.get_json(silent=True) or {}
        try:
            added = get_agent().confirm_scan(data.get('names'))
        except ValueError as e:
            return error(str(e), 400)
        return respond({"added": added})

    # --- PLAN ---
    @app.route('/api/plan')
    def plan():
        return respond({"plan": _dump(get_agent().meal_plan)})

    @app.route('/api/plan/generate', methods=['POST'])
    def generate():
        agent = get_agent()
        plan = agent.generate_week()
        if plan is None and agent.last_request_discarded:
            return respond({"discarded": True}, code=409, status="discarded")
        if plan is None:
            return error("Plan generation failed", 502)
        return respond({"plan": _dump(plan)})

    @app.route('/api/plan/<int:index>/swaps')
    def swaps(index):
        try:
            options = get_agent().fetch_swaps(index)
        except IndexError as e:
            return error(str(e), 404)
        return respond({"options": _dump(options)})

    @app.route('/api/plan/<int:index>/swap', methods=['POST'])
    def swap(index):
        data = request.get_json(silent=True) or {}
        try:
            meal = get_agent().swap_meal(index, data)
        except IndexError as e:
            return error(str(e), 404)
        except ValueError as e:
            return error(str(e), 400)
        return respond({"meal": meal.model_dump(mode="json", by_alias=True)})

    @app.route('/api/plan/<int:index>/move', methods=['POST'])
    def move(index):
        agent = get_agent()
        data = request.get_json(silent=True) or {}
        try:
            moved = agent.move_meal(index, data.get('day'))
        except IndexError as e:
            return error(str(e), 404)
        except ValueError as e:
            return error(str(e), 400)
        return respond({"moved": moved, "plan": _dump(agent.meal_plan)})

    @app.route('/api/plan/<int:index>/dine_out', methods=['POST'])
    def dine_out(index):
        try:
            meal = get_agent().dine_out(index)
        except IndexError as e:
            return error(str(e), 404)
        return respond({"meal": meal.model_dump(mode="json", by_alias=True)})

    @app.route('/api/plan/finalize', methods=['POST'])
    def finalize():
        entry = get_agent().finalize_week()
        if entry is None:
            return error("No plan to save", 409)
        return respond({"entry": entry})

    # --- MODELS ---
    @app.route('/api/models', methods=['GET', 'POST'])
    def models():
        model_manager = get_agent().model_manager
        if request.method == 'POST':
            data = request.get_json(silent=True) or {}
            try:
                model_manager.set_model(data.get('model'))
            except ValueError as e:
                return error(str(e), 400)
        return respond({
            "model": model_manager.get_model_id(),
            "models": model_manager.get_available_models(),
        })

    # --- SESSION ---
    @app.route('/api/navigate', methods=['POST'])
    def navigate():
        data = request.get_json(silent=True) or {}
        try:
            get_agent().navigate(data.get('screen'))
        except ValueError as e:
            return error(str(e), 400)
        return respond()

    @app.route('/api/reset', methods=['POST'])
    def reset():
        get_agent().reset_all()
        return respond()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = create_app()
    app.run(host='0.0.0.0', port=5005, debug=app.config.get('DEBUG', False))
