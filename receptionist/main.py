"""CLI entry point for the AI Receptionist client.

A terminal chat loop driven through the resilience coordinator: messages go
to the remote service when it is reachable and are answered locally when it
is not.  For the server itself, use ``receptionist/server.py``.

Usage:
    python -m receptionist.main            # normal mode (quiet)
    python -m receptionist.main --debug    # debug mode (shows API calls)
"""

from __future__ import annotations

import argparse
import logging

from dotenv import load_dotenv

from receptionist.coordinator import CoordinatorState, InvalidTransitionError, ResilienceCoordinator
from receptionist.services.receptionist_client import ReceptionistClient

logger = logging.getLogger(__name__)

_STATUS_LABELS = {
    CoordinatorState.CHECKING: "Checking connection…",
    CoordinatorState.ONLINE: "Live AI (server online)",
    CoordinatorState.OFFLINE: "Demo mode (server unavailable, using local AI processing)",
}


def _configure_logging(debug: bool = False) -> None:
    """Set up logging: WARNING by default, DEBUG when --debug is passed."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    )
    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("receptionist").setLevel(logging.DEBUG if debug else logging.INFO)


def main():
    """Run the interactive CLI chat loop."""
    parser = argparse.ArgumentParser(description="AI Receptionist CLI")
    parser.add_argument(
        "--debug", action="store_true",
        help="Show all log messages including HTTP requests",
    )
    parser.add_argument("--base-url", help="Override RECEPTIONIST_BASE_URL")
    args = parser.parse_args()

    load_dotenv()
    _configure_logging(debug=args.debug)

    print("\n" + "=" * 60)
    print("  AI Receptionist - CLI Chat")
    print("=" * 60)
    print("  Type your message and press Enter.")
    print("  Commands: 'quit', 'new' (new session), 'retry' (reconnect), 'status'.")
    print("=" * 60 + "\n")

    coordinator = ResilienceCoordinator(ReceptionistClient(base_url=args.base_url))
    coordinator.start()
    print(f">> {_STATUS_LABELS[coordinator.state]}\n")

    while True:
        try:
            user_input = input("You: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\n\nGoodbye!")
            break

        if not user_input:
            continue

        command = user_input.lower()
        if command in ("exit", "quit", "q"):
            print("\nGoodbye! Have a great day!")
            break

        if command == "new":
            session_id = coordinator.new_session()
            print(f"\n>> New session started: {session_id}\n")
            continue

        if command == "status":
            print(f"\n>> {_STATUS_LABELS[coordinator.state]} — session {coordinator.session_id}\n")
            continue

        if command == "retry":
            try:
                coordinator.retry_connection()
            except InvalidTransitionError:
                print("\n>> Already connected.\n")
                continue
            print(f"\n>> {_STATUS_LABELS[coordinator.state]}\n")
            continue

        reply = coordinator.handle_message(user_input)
        print(f"\nReceptionist: {reply.response}\n")
        if reply.form_data:
            details = reply.form_data
            print(
                f"  [{details['type']}] {details['customerName']} — "
                f"{details['appointmentDate']} at {details['appointmentTime']} "
                f"({details['service']}, {details['status']})\n"
            )


if __name__ == "__main__":
    main()
