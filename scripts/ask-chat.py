#!/usr/bin/env python3

"""
Ask Chat - command-line client for the enterprise chat assistant.

What this script does:
- Validates the configured endpoints (CHAT_ENDPOINT, AUTH_ENDPOINT)
- Logs in with the given email (password prompted) or reuses the stored session
- Sends one question per line of stdin, or a single --question, with full history
- Prints each answer with its sources and token usage
- Prints the aggregated analytics summary at the end

Usage:
    ./scripts/ask-chat.py --department HR --question "How many vacation days do I get?"
    ./scripts/ask-chat.py --email jane@example.com --department Finance < questions.txt
"""

import argparse
import getpass
import json
import logging
import sys

from chat_assist import build_client, load_config, validate_config
from chat_assist.exceptions import AuthError
from chat_assist.prompts import DEPARTMENTS

logger = logging.getLogger(__name__)


def parse_args():
    parser = argparse.ArgumentParser(description="Ask the enterprise chat assistant")
    parser.add_argument("--department", default="General", choices=DEPARTMENTS)
    parser.add_argument("--locale", default="en_US")
    parser.add_argument("--question", help="Single question to ask (default: read lines from stdin)")
    parser.add_argument("--email", help="Log in with this email before asking")
    parser.add_argument("--logout", action="store_true", help="Clear the stored session and exit")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args()


def print_answer(message):
    print(message.content)
    for source in message.sources or []:
        reference = f" ({source.reference})" if source.reference else ""
        print(f"  - [{source.type}] {source.title}{reference}")
    analytics = message.analytics
    print(
        f"  tokens: {analytics.input_tokens} in / {analytics.output_tokens} out, "
        f"{analytics.execution_time_ms}ms, session {analytics.session_id}"
    )


def main():
    args = parse_args()
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    config = load_config()
    is_valid, errors = validate_config(config)
    if not is_valid:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    conversation = build_client(config)
    auth_client = conversation.api_client.auth_client

    if args.logout:
        auth_client.logout()
        print("Logged out")
        return 0

    if args.email:
        password = getpass.getpass(f"Password for {args.email}: ")
        try:
            session = auth_client.login({"email": args.email, "password": password})
        except AuthError as e:
            print(f"Login failed: {e}", file=sys.stderr)
            return 1
        print(f"Logged in as {session.user.name} ({session.user.department})")
    elif not auth_client.get_auth_token():
        print("Error: not logged in. Use --email to log in.", file=sys.stderr)
        return 1

    questions = [args.question] if args.question else [line.strip() for line in sys.stdin if line.strip()]

    exit_code = 0
    for question in questions:
        print(f"> {question}")
        answer = conversation.send_message(question, args.department, args.locale)
        if answer is None:
            print(f"Error: {conversation.error}", file=sys.stderr)
            exit_code = 1
            continue
        print_answer(answer)
        print()

    conversation.api_client.close()

    summary = conversation.analytics.get_aggregated_analytics()
    print(json.dumps(summary.model_dump(), indent=2))
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
