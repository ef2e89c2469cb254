from argosy import Switch, verb


@verb(aliases=("ls",), options=[Switch("--running", descr="only show running services")], arity="?")
def list(options):
    """List all managed services."""
    return "list", options.arguments
