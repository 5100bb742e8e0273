"""CLI entrypoint for auditctl."""

import auditctl.cli.export_cmd  # noqa: F401
import auditctl.cli.log_cmd  # noqa: F401
import auditctl.cli.query_cmd  # noqa: F401
import auditctl.cli.replay_cmd  # noqa: F401
import auditctl.cli.verify_cmd  # noqa: F401
from auditctl.cli.main import cli


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
