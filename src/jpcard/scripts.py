import logging
from functools import partial
from pathlib import Path

import click
from click.core import ParameterSource

from jpcard.core.base import PLAIN_POLICY, SECURE_POLICY, ChunkPolicy
from jpcard.core.mynumber import Credential
from jpcard.core.smartcard.logging import PROTOCOL, TRACE

lg = logging.getLogger(__name__)

_CREDENTIALS = {c.value: c for c in Credential}


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="TRACE level (show raw APDUs).")
@click.option("-r", "--reader", default=None, help="Use the first reader whose name contains this.")
@click.option(
    "--initial-chunk",
    type=click.IntRange(1, 0xFFFF),
    default=PLAIN_POLICY.initial,
    show_default=True,
    help="Size of the first READ BINARY of a record.",
)
@click.option(
    "--max-chunk",
    type=click.IntRange(1, 0xFFFF),
    default=PLAIN_POLICY.maximum,
    show_default=True,
    help="Size limit of every later READ BINARY.",
)
@click.option(
    "--secure-max-chunk",
    type=click.IntRange(1, 0xFFFF),
    default=SECURE_POLICY.maximum,
    show_default=True,
    help="Size limit of READ BINARY under secure messaging.",
)
@click.pass_context
def jpcard(ctx, verbose, reader, initial_chunk, max_chunk, secure_max_chunk):
    """Read Japanese Individual Number cards and residence cards."""
    logging.basicConfig(
        level=TRACE if verbose else PROTOCOL,
        format="%(levelname)-8s %(name)s: %(message)s",
    )
    if initial_chunk > max_chunk:
        hint = "'--initial-chunk'"
        if ctx.get_parameter_source("max_chunk") is not ParameterSource.DEFAULT:
            hint = "'--max-chunk'"
        raise click.BadParameter(
            f"initial chunk {initial_chunk} exceeds maximum chunk {max_chunk}",
            param_hint=hint,
        )
    # A caller may preset the transport factory; PC/SC otherwise.
    transport = (ctx.obj or {}).get("transport")
    ctx.obj = {
        "reader": reader,
        "transport": transport,
        "policy": ChunkPolicy(initial=initial_chunk, maximum=max_chunk),
        "secure_policy": ChunkPolicy(
            initial=min(SECURE_POLICY.initial, secure_max_chunk),
            maximum=secure_max_chunk,
        ),
    }


def _run_mynumber(ctx, operation):
    from jpcard.app.session import mynumber_session

    ok = mynumber_session(
        operation,
        ctx.obj["reader"],
        ctx.obj["policy"],
        transport=ctx.obj["transport"],
    )
    if not ok:
        ctx.exit(1)


@jpcard.command()
@click.option(
    "-t", "--type", "kind",
    type=click.Choice(["auth", "sign"]),
    default="auth",
    show_default=True,
    help="Authentication or signature certificate.",
)
@click.option("--pin", default=None, help="PIN (auth) or signature password (sign).")
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.pass_context
def certificate(ctx, kind, pin, output):
    """Read a JPKI certificate."""
    from jpcard.app.session import read_certificate

    credential = _CREDENTIALS[kind]
    if pin is None and credential is Credential.DIGITAL_SIGNATURE:
        pin = click.prompt("Signature password", hide_input=True)
    _run_mynumber(ctx, partial(read_certificate, credential=credential, pin=pin, output=output))


@jpcard.command("basic-info")
@click.option("--pin", prompt="PIN", hide_input=True, help="4-digit card info PIN.")
@click.pass_context
def basic_info(ctx, pin):
    """Read name, address, date of birth and sex."""
    from jpcard.app.session import read_basic_info

    _run_mynumber(ctx, partial(read_basic_info, pin=pin))


@jpcard.command("my-number")
@click.option("--pin", prompt="PIN", hide_input=True, help="4-digit card info PIN.")
@click.pass_context
def my_number(ctx, pin):
    """Read the individual number."""
    from jpcard.app.session import read_my_number

    _run_mynumber(ctx, partial(read_my_number, pin=pin))


@jpcard.command("pin-status")
@click.option(
    "-t", "--type", "kind",
    type=click.Choice(sorted(_CREDENTIALS)),
    default="auth",
    show_default=True,
)
@click.pass_context
def pin_status(ctx, kind):
    """Show remaining PIN attempts."""
    from jpcard.app.session import pin_status as run

    _run_mynumber(ctx, partial(run, credential=_CREDENTIALS[kind]))


@jpcard.command()
@click.option("-n", "--card-number", prompt="Card number", help="Printed card number, e.g. AB12345678CD.")
@click.option(
    "--images",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory to write the front image and photo to.",
)
@click.pass_context
def residence(ctx, card_number, images):
    """Read a residence card and verify its check code."""
    from jpcard.app.session import read_residence_card, residence_session

    ok = residence_session(
        partial(read_residence_card, card_number=card_number, image_dir=images),
        ctx.obj["reader"],
        ctx.obj["policy"],
        ctx.obj["secure_policy"],
        transport=ctx.obj["transport"],
    )
    if not ok:
        ctx.exit(1)
