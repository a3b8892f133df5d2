import sys
import subprocess

from . import __version__


COMMANDS = {
    "deploy": "pywpe.deploy",
    "init": "pywpe.init",
}

ALIASES = {
    "i": "init",
}

DEFAULT_COMMAND = "deploy"


def _print_usage() -> None:
    print(
        "\n".join(
            [
                "usage:",
                "  wpedeploy [command] [options]",
                "  wpedeploy help <command>",
                "  wpedeploy -h | --help",
                "  wpedeploy -v | --version",
                "",
                "deploy a WordPress plugin or theme to WP Engine",
                "",
                "commands:",
                "  deploy    Deploy using wpedeploy.json (default when no command is given)",
                "  init, i   Create a wpedeploy.json file",
                "",
                "deploy options:",
                "  -e, --env <env>     environment to deploy to, staging or production",
                "  -s, --skip-confirm  push changes to WP Engine repo without asking for confirmation",
                "  -f, --force         force push your changes to WP Engine repo",
            ]
        )
    )


def main(argv=None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)

    if argv and argv[0] in {"-h", "--help", "help"}:
        if len(argv) == 2 and argv[0] == "help":
            cmd = ALIASES.get(argv[1], argv[1])
            args = ["-h"]
        else:
            _print_usage()
            return 0
    elif argv and argv[0] in {"-v", "--version"}:
        print(__version__)
        return 0
    elif not argv or argv[0].startswith("-"):
        # bare options belong to deploy
        cmd = DEFAULT_COMMAND
        args = argv
    else:
        cmd = ALIASES.get(argv[0], argv[0])
        args = argv[1:]

    if cmd not in COMMANDS:
        print(f"\n  wpedeploy: {cmd} is not a wpedeploy command. See 'wpedeploy --help'.\n", file=sys.stderr)
        return 2

    module_name = COMMANDS[cmd]

    # Re-exec the module as a script so each command owns its own argv
    proc = subprocess.run([sys.executable, "-m", module_name, *args])
    return proc.returncode


if __name__ == "__main__":
    raise SystemExit(main())
