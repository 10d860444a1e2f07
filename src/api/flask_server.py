"""
Flask server for the Objective Calendar Planner: JSON API and browser flow
"""
import json
import logging
import signal
import sys
import time
import uuid
from datetime import datetime

from flask import Flask, flash, jsonify, redirect, render_template, request, session, url_for
from flask_cors import CORS

from config.settings import Config
from src.calendar.calendar_view import CalendarView
from src.planner.calendar_planner import CalendarPlanner
from src.planner.constraint_collector import ConstraintCollector
from src.planner.errors import (
    GenerationError,
    GenerationInProgressError,
    MissingStateError,
    StorageError,
    ValidationError,
)
from src.planner.models import DENSITY_LABELS, CalendarRequest, MeetingDensity
from utils.logger import PlannerLogger
from utils.validators import DataSanitizer, RequestValidator

logger = logging.getLogger(__name__)

CONTEXT_ERROR_MESSAGE = "Échec de la génération du contexte professionnel"
CALENDAR_ERROR_MESSAGE = "Échec de la génération du planning de calendrier"


class CalendarPlannerAPI:
    """
    Flask application serving the planning flow.

    The JSON endpoints are stateless wrappers around the generators; the
    HTML pages keep their state in the planner's session store, keyed by an
    id held in Flask's signed session cookie.
    """

    def __init__(self, planner: CalendarPlanner = None, config: Config = None):
        self.config = config or Config()
        self.app = Flask(__name__)
        self.app.secret_key = self.config.SECRET_KEY
        CORS(self.app, resources={r"/api/*": {"origins": "*"}})

        self.planner = planner or CalendarPlanner(config=self.config)
        self.start_time = time.time()
        self.requests_processed = 0

        self._setup_routes()

    def _session_id(self) -> str:
        if "sid" not in session:
            session["sid"] = uuid.uuid4().hex
        return session["sid"]

    def _week_offset(self, value: int) -> int:
        limit = self.config.MAX_WEEK_OFFSET
        return max(-limit, min(limit, value))

    def _timed_generation(self, step: str, session_id: str, action):
        started = time.time()
        try:
            result = action()
        except GenerationError as e:
            PlannerLogger.log_generation(step, session_id, False, time.time() - started, {"error": str(e)})
            raise
        PlannerLogger.log_generation(step, session_id, True, time.time() - started)
        return result

    def _setup_routes(self):
        """Setup Flask routes"""
        app = self.app

        @app.errorhandler(MissingStateError)
        def missing_state(error):
            logger.info(f"Missing {error.step}, sending user back to {error.redirect_to}")
            flash("Données manquantes, retour à l'étape précédente", "error")
            return redirect(error.redirect_to)

        @app.errorhandler(404)
        def not_found(error):
            return jsonify({"error": "Endpoint not found"}), 404

        @app.errorhandler(500)
        def internal_error(error):
            return jsonify({"error": "Internal server error"}), 500

        # ---- JSON API ----

        @app.route('/health', methods=['GET'])
        def health_check():
            """Health check endpoint"""
            return jsonify({
                "status": "healthy",
                "timestamp": datetime.now().isoformat(),
                "llm_model": getattr(self.planner.llm_client, "model_name", "unknown"),
            })

        @app.route('/status', methods=['GET'])
        def get_status():
            """Get server status and statistics"""
            return jsonify({
                "status": "running",
                "requests_processed": self.requests_processed,
                "uptime": time.time() - self.start_time,
                "active_sessions": self.planner.store.session_count(),
                "tracked_sessions": self.planner.tracked_sessions(),
                "llm": self.planner.llm_client.get_stats(),
            })

        @app.route('/api/mock-context', methods=['GET'])
        def mock_context():
            """Generate one professional context"""
            self.requests_processed += 1
            try:
                context = self.planner.context_generator.generate()
            except GenerationError as e:
                logger.error(f"Error generating mock context: {e}")
                return jsonify({"error": CONTEXT_ERROR_MESSAGE}), 500
            return jsonify(context.to_dict())

        @app.route('/api/calendar', methods=['POST'])
        def calendar():
            """Generate one event batch for a calendar request body"""
            self.requests_processed += 1
            data = request.get_json(silent=True)
            errors = RequestValidator.validate_calendar_request(data)
            if errors:
                logger.warning(f"Rejected calendar request: {errors}")
                return jsonify({"error": "Requête invalide", "details": errors}), 400

            try:
                events = self.planner.calendar_generator.generate_from_request(
                    CalendarRequest.from_dict(data)
                )
            except GenerationError as e:
                logger.error(f"Error generating calendar data: {e}")
                return jsonify({"error": CALENDAR_ERROR_MESSAGE}), 500
            return jsonify({"events": [event.to_dict() for event in events]})

        @app.route('/api/session', methods=['GET'])
        def session_blobs():
            """Persisted state of the caller's session, key by key"""
            blobs = self.planner.store.get_blobs(self._session_id())
            return jsonify({key: json.loads(value) for key, value in blobs.items()})

        # ---- Browser flow ----

        @app.route('/', methods=['GET'])
        def welcome():
            state = self.planner.load_state(self._session_id())
            return render_template("welcome.html", has_context=state.context is not None)

        @app.route('/start', methods=['POST'])
        def start():
            self.planner.start_session(self._session_id())
            return redirect(url_for("context_page"))

        @app.route('/context', methods=['GET'])
        def context_page():
            session_id = self._session_id()
            state = self.planner.load_state(session_id)
            context = state.context
            error = None

            if context is None:
                try:
                    context = self._timed_generation(
                        "context", session_id, lambda: self.planner.generate_context(session_id))
                except GenerationInProgressError:
                    error = "Un contexte est déjà en cours de génération, réessayez dans un instant"
                except GenerationError:
                    error = "Erreur lors de la génération du contexte"
                except StorageError as e:
                    logger.error(f"Could not store context: {e}")
                    error = "Impossible d'enregistrer le contexte"
                else:
                    if context is None:
                        return redirect(url_for("welcome"))

            return render_template("context.html", context=context, error=error)

        @app.route('/context/regenerate', methods=['POST'])
        def regenerate_context():
            session_id = self._session_id()
            try:
                self._timed_generation("context", session_id, lambda: self.planner.generate_context(session_id))
            except GenerationInProgressError:
                flash("Un contexte est déjà en cours de génération", "error")
            except GenerationError:
                flash("Erreur lors de la génération du contexte", "error")
            except StorageError:
                flash("Impossible d'enregistrer le contexte", "error")
            return redirect(url_for("context_page"))

        @app.route('/constraints', methods=['GET'])
        def constraints_page():
            session_id = self._session_id()
            collector = self.planner.get_collector(session_id)
            context = self.planner.load_state(session_id).require_context()
            return render_template(
                "constraints.html",
                context=context,
                collector=collector,
                examples=collector.available_examples(),
                densities=[(density.value, DENSITY_LABELS[density]) for density in MeetingDensity],
            )

        @app.route('/constraints/add', methods=['POST'])
        def add_constraint():
            return self._update_collector(lambda c: c.add_constraint(request.form.get("description", "")))

        @app.route('/constraints/example', methods=['POST'])
        def add_example_constraint():
            return self._update_collector(lambda c: c.add_example_constraint(request.form.get("description", "")))

        @app.route('/constraints/remove/<constraint_id>', methods=['POST'])
        def remove_constraint(constraint_id):
            return self._update_collector(lambda c: c.remove_constraint(constraint_id))

        @app.route('/constraints', methods=['POST'])
        def submit_constraints():
            session_id = self._session_id()
            collector = self.planner.get_collector(session_id)
            try:
                self._apply_form(collector)
                self.planner.save_constraints(session_id, collector.snapshot())
            except ValidationError as e:
                flash(str(e), "error")
                return redirect(url_for("constraints_page"))
            except StorageError:
                flash("Impossible d'enregistrer les contraintes", "error")
                return redirect(url_for("constraints_page"))
            return redirect(url_for("generate_page"))

        @app.route('/generate', methods=['GET'])
        def generate_page():
            session_id = self._session_id()
            state = self.planner.load_state(session_id)
            context = state.require_context()
            constraints = state.require_constraints()
            events = state.events
            error = None

            if events is None:
                try:
                    events = self._timed_generation(
                        "calendar", session_id, lambda: self.planner.generate_calendar(session_id))
                except GenerationInProgressError:
                    error = "Le calendrier est en cours de génération, réessayez dans un instant"
                except GenerationError:
                    error = "Erreur lors de la génération du calendrier"
                except StorageError as e:
                    logger.error(f"Could not store calendar: {e}")
                    error = "Impossible d'enregistrer le calendrier"
                else:
                    if events is None:
                        # Restarted or edited meanwhile: rebuild from what is stored now
                        return redirect(url_for("generate_page"))
                    flash("Calendrier généré avec succès !", "success")

            view = CalendarView(events or [], context.current_user.objectives, constraints,
                                week_offset=self._week_offset(request.args.get("week", 0, type=int)),
                                config=self.config)
            selected_index = request.args.get("event", type=int)
            selected = view.get_event(selected_index) if selected_index is not None else None

            return render_template(
                "calendar.html",
                context=context,
                constraints=constraints,
                view=view,
                has_events=events is not None,
                error=error,
                details=view.event_details(selected) if selected else None,
                generating=self.planner.is_generating(session_id, "calendar"),
            )

        @app.route('/generate/regenerate', methods=['POST'])
        def regenerate_calendar():
            session_id = self._session_id()
            try:
                events = self._timed_generation(
                    "calendar", session_id, lambda: self.planner.generate_calendar(session_id))
            except GenerationInProgressError:
                flash("Une génération est déjà en cours", "error")
            except GenerationError:
                flash("Erreur lors de la génération du calendrier", "error")
            except StorageError:
                flash("Impossible d'enregistrer le calendrier", "error")
            else:
                if events is not None:
                    flash("Calendrier généré avec succès !", "success")
            week = self._week_offset(request.form.get("week", 0, type=int))
            return redirect(url_for("generate_page", week=week))

    def _apply_form(self, collector: ConstraintCollector):
        """Copy working hours and density from the submitted form"""
        collector.set_working_hours(
            DataSanitizer.sanitize_hour(request.form.get("workingHoursStart"), collector.working_hours_start),
            DataSanitizer.sanitize_hour(request.form.get("workingHoursEnd"), collector.working_hours_end),
        )
        density = request.form.get("meetingDensity")
        if density:
            try:
                collector.set_meeting_density(density)
            except ValueError:
                raise ValidationError([f"Densité inconnue: {density}"])

    def _update_collector(self, change):
        session_id = self._session_id()
        collector = self.planner.get_collector(session_id)
        try:
            self._apply_form(collector)
        except ValidationError as e:
            flash(str(e), "error")
        change(collector)
        try:
            self.planner.save_draft(session_id, collector)
        except StorageError:
            flash("Impossible d'enregistrer les contraintes", "error")
        return redirect(url_for("constraints_page"))

    def _setup_signal_handlers(self):
        """Setup graceful shutdown handlers"""
        def signal_handler(signum, frame):
            logger.info(f"Received signal {signum}, shutting down gracefully...")
            self.shutdown()
            sys.exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def run(self, host=None, port=None, debug=False):
        """Run the Flask server"""
        host = host or self.config.API_HOST
        port = port or self.config.API_PORT

        self._setup_signal_handlers()
        self.start_time = time.time()

        logger.info(f"Starting Calendar Planner server on {host}:{port}")
        logger.info(f"LLM client: {type(self.planner.llm_client).__name__}")

        self.app.run(
            host=host,
            port=port,
            debug=debug,
            threaded=True,
            use_reloader=False
        )

    def shutdown(self):
        """Graceful shutdown"""
        logger.info("Shutting down Calendar Planner server...")


def create_app(planner: CalendarPlanner = None, config: Config = None) -> Flask:
    """Factory function to create Flask app"""
    api = CalendarPlannerAPI(planner, config)
    return api.app


def main():
    """Main entry point for the server alone"""
    import argparse

    parser = argparse.ArgumentParser(description='Calendar Planner Server')
    parser.add_argument('--host', default=None, help='Host to bind to')
    parser.add_argument('--port', type=int, default=None, help='Port to bind to')
    parser.add_argument('--debug', action='store_true', help='Enable debug mode')

    args = parser.parse_args()

    config = Config()
    PlannerLogger.setup_logging(config.LOG_LEVEL, config.LOG_FILE)
    api = CalendarPlannerAPI(config=config)
    api.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == '__main__':
    main()
