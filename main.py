import logging

from rich.pretty import pprint

from argosy import *

__prog__ = "services"

services = CommandContext(
    "services",
    [
        Flag("--sudo-service-user=", metavar="USER", env="SERVICES_SUDO_USER", descr="run the services as this user"),
        Switch("--json", descr="print machine-readable output"),
        Switch("-a", "--all", descr="act on every managed service"),
    ],
    descr="Manage background services.",
    epilog="Run 'services <verb> --help' for the options of one verb.",
    shell=True,
)


@services.verb(aliases=("ls", "l"), default=True, arity="?")
def list(options):
    """List all managed services."""
    pprint(dict(options) | {"arguments": options.arguments})


@services.verb(aliases=("launch",), arity="*")
def start(options):
    """Start one or more services."""
    if not options.all and not options.arguments:
        raise RuntimeError("name a service or pass --all")
    pprint(dict(options) | {"arguments": options.arguments})


@services.verb(
    options=[
        Switch("--keep", descr="keep the service registered after stopping it"),
        Switch("--no-wait", descr="do not wait for the service to exit"),
        Flag("--max-wait=", metavar="SECONDS", conflicts=["--no-wait"], descr="give up waiting after SECONDS"),
    ],
    arity="*",
)
def stop(options):
    """Stop one or more services."""
    pprint(dict(options) | {"arguments": options.arguments})


if __name__ == '__main__':
    logging.basicConfig(level=logging.WARNING)
    services.__invoke__()
