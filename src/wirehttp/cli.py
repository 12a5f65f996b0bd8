"""Command-line interface for wirehttp using Click."""

import logging
import sys
from contextlib import ExitStack
from typing import Optional, Tuple

import click
import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from wirehttp import __version__
from wirehttp.client import HttpClient
from wirehttp.config import CONFIG_TYPES, coerce_option
from wirehttp.exceptions import ConnectionRefused, ConnectionTimedOut, WireHTTPError
from wirehttp.http.cookies import cookie_header, load_cookies_from_file
from wirehttp.http.headers import load_headers_from_file

# Setup logging - default to WARNING so only the response is printed
# INFO and DEBUG logs are only shown when --verbose is used
logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_retry_decorator(retries: int, wait_min: float, wait_max: float):
    """Create a tenacity retry decorator for connection attempts.

    Only refused and timed-out connections are retried; the library itself
    never retries.

    Args:
        retries: Extra attempts after the first one
        wait_min: Minimum wait between attempts (seconds)
        wait_max: Maximum wait between attempts (seconds)

    Returns:
        Configured retry decorator
    """
    return retry(
        stop=stop_after_attempt(retries + 1),
        wait=wait_exponential(multiplier=wait_min, min=wait_min, max=wait_max),
        retry=retry_if_exception_type((ConnectionRefused, ConnectionTimedOut)),
        reraise=True,
    )


def parse_pair(text: str, separator: str) -> Tuple[str, str]:
    """Split ``name<sep>value``; raises click.BadParameter if malformed."""
    if separator not in text:
        raise click.BadParameter(f"expected NAME{separator}VALUE, got {text!r}")
    name, value = text.split(separator, 1)
    return name.strip(), value.strip() if separator == ':' else value


def _setting(item: str) -> Tuple[str, object]:
    key, value = parse_pair(item, '=')
    return key, coerce_option(key, value)


@click.group(invoke_without_command=True)
@click.option('--version', '-v', is_flag=True, help='Show version and exit')
@click.pass_context
def cli(ctx, version):
    """wirehttp - Send byte-exact HTTP requests.

    Builds requests exactly as written on the wire, answers Basic
    authentication challenges automatically and prints the raw response.
    """
    if version:
        click.echo(f"wirehttp version {__version__}")
        ctx.exit()

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument('url')
@click.option('--method', '-X', help='Request method (default: GET, or POST with a body)')
@click.option('--data', '-d', help='Request body, sent verbatim')
@click.option('--form', '-F', 'form', multiple=True, help='Form field NAME=VALUE or NAME=@FILE (repeatable)')
@click.option('--header', '-H', 'header', multiple=True, help='Header "Name: value" (repeatable)')
@click.option('--header-file', help='Path to header file')
@click.option('--cookie-file', help='Path to cookie file (Netscape format)')
@click.option('--user', '-u', help='Credentials as USER:PASSWORD')
@click.option('--agent', '-A', help='Custom user agent')
@click.option('--set', 'settings', multiple=True, help='Client option KEY=VALUE (see "wirehttp options")')
@click.option('--raw', is_flag=True, help='Build a raw request (no implicit headers)')
@click.option('--proxies', help='Proxy chain, e.g. "http:10.0.0.1:8080"')
@click.option('--timeout', default=20.0, help='Connect/read timeout in seconds')
@click.option('--connect-retries', default=0, help='Retry refused or timed-out connections')
@click.option('--retry-wait-min', default=1.0, help='Minimum wait between retries (seconds)')
@click.option('--retry-wait-max', default=10.0, help='Maximum wait between retries (seconds)')
@click.option('--dry-run', is_flag=True, help='Print the request instead of sending it')
@click.option('--verbose', is_flag=True, help='Enable verbose logging')
def request(
    url: str,
    method: Optional[str],
    data: Optional[str],
    form: Tuple[str, ...],
    header: Tuple[str, ...],
    header_file: Optional[str],
    cookie_file: Optional[str],
    user: Optional[str],
    agent: Optional[str],
    settings: Tuple[str, ...],
    raw: bool,
    proxies: Optional[str],
    timeout: float,
    connect_retries: int,
    retry_wait_min: float,
    retry_wait_max: float,
    dry_run: bool,
    verbose: bool,
):
    """Send one request to URL and print the response.

    Example:
        wirehttp request http://10.0.0.5/login -F user=admin -F cv=@cv.txt
    """
    if verbose:
        logging.getLogger('wirehttp').setLevel(logging.DEBUG)

    try:
        target = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise click.BadParameter(str(e), param_hint='URL')
    if target.scheme not in ('http', 'https') or not target.host:
        raise click.BadParameter(f"expected an http:// or https:// URL, got {url!r}", param_hint='URL')

    ssl = target.scheme == 'https'
    port = target.port or (443 if ssl else 80)
    uri = target.raw_path.decode('ascii')

    username, password = '', ''
    if user:
        username, _, password = user.partition(':')

    client = HttpClient(target.host, port, ssl=ssl, proxies=proxies, username=username, password=password)
    client.set_config(dict(_setting(item) for item in settings))

    headers = load_headers_from_file(header_file) if header_file else {}
    for item in header:
        name, value = parse_pair(item, ':')
        headers[name] = value

    opts = {'uri': uri}
    if headers:
        opts['headers'] = headers
    if agent:
        opts['agent'] = agent
    if data is not None:
        opts['data'] = data
    if cookie_file:
        cookie = cookie_header(load_cookies_from_file(cookie_file), target.host, target.path, ssl)
        if cookie:
            opts['cookie'] = cookie

    with ExitStack() as stack:
        if form:
            parts = []
            for item in form:
                name, value = parse_pair(item, '=')
                if value.startswith('@'):
                    value = stack.enter_context(open(value[1:], 'rb'))
                parts.append({'name': name, 'data': value})
            opts['form_data'] = parts

        if method:
            opts['method'] = method
        elif data is not None or form:
            opts['method'] = 'POST'

        req = client.request_raw(opts) if raw else client.request_cgi(opts)

    if dry_run:
        click.echo(bytes(req), nl=False)
        return

    connect = create_retry_decorator(connect_retries, retry_wait_min, retry_wait_max)(client.connect)
    try:
        connect(timeout)
        response = client.send_recv(req, timeout)
    except WireHTTPError as e:
        click.echo(f"✗ Failed: {e}", err=True)
        sys.exit(1)

    click.echo(f"HTTP/{response.version} {response.code} {response.message}")
    for name, value in response.headers:
        click.echo(f"{name}: {value}")
    click.echo()
    click.echo(response.body, nl=False)


@cli.command()
def options():
    """List recognized client options and their types."""
    click.echo("Recognized options:")
    click.echo()

    for key in sorted(CONFIG_TYPES):
        click.echo(f"  • {key:<15} {CONFIG_TYPES[key]}")

    click.echo()
    click.echo("Unrecognized options are kept and passed through unchanged.")


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == '__main__':
    main()
