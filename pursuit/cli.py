"""
Pursuit CLI - Command-line interface for the engine.

Usage:
    pursuit serve [--host HOST] [--port PORT]      Run the HTTP API
    pursuit simulate [--players N] [--seed S]      Play a bot-only game
"""

import argparse
import sys

from loguru import logger

from .config import settings


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Pursuit - Joker Pursuit rules engine",
        prog="pursuit",
    )
    parser.add_argument("--log-level", default=settings.LOG_LEVEL, help="Loguru log level")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=settings.HOST, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=settings.PORT, help="Bind port")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Play a game between bots")
    simulate_parser.add_argument("--players", type=int, default=4, help="Number of bot players")
    simulate_parser.add_argument("--sections", type=int, default=None, help="Board sections")
    simulate_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    simulate_parser.add_argument(
        "--max-events", type=int, default=50_000, help="Give up after this many events"
    )

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "simulate":
        cmd_simulate(args)
    else:
        parser.print_help()
        sys.exit(1)


def configure_logging(level: str):
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def cmd_serve(args):
    """Run the API with uvicorn."""
    import uvicorn

    from .api import create_app

    logger.info("Serving on {}:{}", args.host, args.port)
    uvicorn.run(create_app(), host=args.host, port=args.port)


def cmd_simulate(args):
    """Play a seeded game between random bots and print the outcome."""
    from .bots import RandomPolicy
    from .engine_core import create_initial_game_state, shuffle_and_deal_cards
    from .session import GameLoop

    names = [f"Bot {i + 1}" for i in range(args.players)]
    try:
        state = create_initial_game_state(
            names, num_sections=args.sections, random_seed=args.seed
        )
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    state = shuffle_and_deal_cards(state)
    policies = {
        p.player_id: RandomPolicy(seed=state.random_seed + i)
        for i, p in enumerate(state.players)
    }
    result = GameLoop(state, policies).run(max_events=args.max_events)

    print(f"Game {state.game_id} (seed {state.random_seed})")
    print(f"Result: {result.loop_state.value}")
    print(f"Events: {result.events_applied}, turns: {result.turns_played}")
    print(f"Bumps: {len(result.bump_messages)}")
    if result.winner is not None:
        winners = [p.name for p in result.final_state.players if p.team_id == result.winner]
        print(f"Winner: team {result.winner} ({', '.join(winners)})")
    for error in result.errors:
        print(f"  - {error}")


if __name__ == "__main__":
    main()
