"""
Environment bootstrap check.

Run before starting the service:

    python -m achievement_alerts.check_env [path/to/.env]

Exits 1 when the .env file is missing or lacks a required variable.
"""
import sys
from pathlib import Path
from typing import Iterable, List, Mapping, Optional

from dotenv import dotenv_values

REQUIRED_ENV_VARS = ("DATABASE_URL",)

RED = "\x1b[31m"
YELLOW = "\x1b[33m"
CYAN = "\x1b[36m"
GREEN = "\x1b[32m"
RESET = "\x1b[0m"


def required_env_vars(values: Mapping[str, Optional[str]]) -> List[str]:
    required = list(REQUIRED_ENV_VARS)
    if (values.get("FEED_BACKEND") or "").strip().lower() == "redis":
        required.append("REDIS_URL")
    return required


def missing_env_vars(values: Mapping[str, Optional[str]], required: Iterable[str]) -> List[str]:
    """Required names that are absent from `values`. A name assigned an empty value counts as present."""
    return [name for name in required if name not in values]


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    env_path = Path(argv[0]) if argv else Path.cwd() / ".env"

    if not env_path.is_file():
        print(f"{RED}.env file not found{RESET}", file=sys.stderr)
        print(f"{CYAN}Please create a .env file based on .env.example{RESET}", file=sys.stderr)
        return 1

    values = dotenv_values(env_path)
    missing = missing_env_vars(values, required_env_vars(values))
    if missing:
        print(f"{RED}Missing required environment variables:{RESET}", file=sys.stderr)
        for name in missing:
            print(f"{YELLOW}   - {name}{RESET}", file=sys.stderr)
        print(f"{CYAN}\nPlease check your .env file and ensure all required variables are set.{RESET}", file=sys.stderr)
        return 1

    print(f"{GREEN}Environment variables validated successfully{RESET}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
