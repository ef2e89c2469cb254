from argosy import Flag, Switch, verb


@verb(aliases=("launch",), arity="*")
def start(options):
    """Start one or more services."""
    return "start", options.arguments


@verb(
    options=[
        Switch("--no-wait"),
        Flag("--max-wait=", metavar="SECONDS", conflicts=["--no-wait"]),
    ],
    arity="*",
)
def stop(options):
    """Stop one or more services."""
    return "stop", options.arguments
