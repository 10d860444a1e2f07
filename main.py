#!/usr/bin/env python3
"""
Main entry point for the Objective Calendar Planner

Runs the web server, or drives the generation steps from the command line
with JSON files in and out.
"""

import json
import logging
import sys

from config.settings import Config
from src.ai_agent.llm_client import create_llm_client
from src.api.flask_server import CalendarPlannerAPI
from src.planner.calendar_generator import CalendarGenerator
from src.planner.context_generator import ContextGenerator
from src.planner.errors import GenerationError
from src.planner.models import CalendarEvent, ProfessionalContext, SchedulingConstraints
from utils.calendar_batch_analyzer import CalendarBatchAnalyzer
from utils.logger import PlannerLogger

logger = logging.getLogger(__name__)


def _load_json(path):
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def _write_json(data, output=None):
    text = json.dumps(data, indent=2, ensure_ascii=False)
    if output:
        with open(output, 'w', encoding='utf-8') as f:
            f.write(text)
        logger.info(f"Saved to {output}")
    else:
        print(text)


def run_server(host=None, port=None, debug=False):
    """Run the Flask server with the configured LLM provider"""
    logger.info("Starting Objective Calendar Planner...")
    try:
        api = CalendarPlannerAPI()
        api.run(host=host, port=port, debug=debug)
    except KeyboardInterrupt:
        logger.info("Server shutdown requested")


def generate_context(config, output=None):
    """Generate one professional context and print or save it"""
    generator = ContextGenerator(create_llm_client(config), config)
    context = generator.generate()
    _write_json(context.to_dict(), output)
    return context


def plan_calendar(config, context_file, constraints_file=None, output=None):
    """Generate a batch for a saved context and optional constraints"""
    context = ProfessionalContext.from_dict(_load_json(context_file))
    if constraints_file:
        constraints = SchedulingConstraints.from_dict(_load_json(constraints_file))
    else:
        constraints = SchedulingConstraints(config.DEFAULT_WORKING_HOURS_START,
                                            config.DEFAULT_WORKING_HOURS_END)

    generator = CalendarGenerator(create_llm_client(config), config)
    events = generator.generate(context, constraints)
    _write_json({"events": [event.to_dict() for event in events]}, output)
    return events


def analyze_batch(events_file, context_file=None, constraints_file=None):
    """Print diagnostics for a saved batch"""
    data = _load_json(events_file)
    raw_events = data.get("events", []) if isinstance(data, dict) else data
    events = [CalendarEvent.from_dict(e) for e in raw_events if isinstance(e, dict)]

    commitments = []
    if context_file:
        commitments = ProfessionalContext.from_dict(_load_json(context_file)).fixed_meetings()
    constraints = SchedulingConstraints.from_dict(_load_json(constraints_file)) if constraints_file else None

    report = CalendarBatchAnalyzer.analyze(events, commitments, constraints)
    CalendarBatchAnalyzer.display_analysis(report)
    return report


def run_tests(api_url="http://localhost:5000"):
    """Run the HTTP smoke checks against a running server"""
    from tests.test_client import PlannerSmokeClient

    logger.info(f"Running smoke checks against {api_url}")

    client = PlannerSmokeClient(api_url)
    results = client.run_smoke_suite()

    summary = results["summary"]
    print(f"\nSmoke Results:")
    print(f"  Total: {summary['total']}")
    print(f"  Passed: {summary['passed']}")
    print(f"  Failed: {summary['failed']}")
    print(f"  Avg response time: {summary['avg_response_time']:.2f}s")

    return results


def main():
    """Main CLI entry point"""
    import argparse

    parser = argparse.ArgumentParser(description='Objective Calendar Planner')
    parser.add_argument('--log-level', default=None, help='Override LOG_LEVEL')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    server_parser = subparsers.add_parser('server', help='Run the web server')
    server_parser.add_argument('--host', default=None, help='Host to bind to')
    server_parser.add_argument('--port', type=int, default=None, help='Port to bind to')
    server_parser.add_argument('--debug', action='store_true', help='Enable debug mode')

    context_parser = subparsers.add_parser('context', help='Generate a professional context')
    context_parser.add_argument('--output', help='Output JSON file')

    plan_parser = subparsers.add_parser('plan', help='Generate a calendar batch')
    plan_parser.add_argument('context_file', help='Context JSON file')
    plan_parser.add_argument('--constraints', help='Constraints JSON file')
    plan_parser.add_argument('--output', help='Output JSON file')

    analyze_parser = subparsers.add_parser('analyze', help='Analyze a generated batch')
    analyze_parser.add_argument('events_file', help='Events JSON file')
    analyze_parser.add_argument('--context', help='Context JSON file, for fixed commitments')
    analyze_parser.add_argument('--constraints', help='Constraints JSON file, for working hours')

    test_parser = subparsers.add_parser('test', help='Run smoke checks against a server')
    test_parser.add_argument('--url', default='http://localhost:5000', help='API URL to test')

    args = parser.parse_args()

    config = Config()
    PlannerLogger.setup_logging(args.log_level or config.LOG_LEVEL, config.LOG_FILE)

    try:
        if args.command == 'server':
            run_server(host=args.host, port=args.port, debug=args.debug)
        elif args.command == 'context':
            generate_context(config, args.output)
        elif args.command == 'plan':
            plan_calendar(config, args.context_file, args.constraints, args.output)
        elif args.command == 'analyze':
            analyze_batch(args.events_file, args.context, args.constraints)
        elif args.command == 'test':
            run_tests(api_url=args.url)
        else:
            parser.print_help()
    except GenerationError as e:
        logger.error(f"Generation failed: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
