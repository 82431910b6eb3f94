"""
orcus-exporter entry point.

Usage:
    orcus-exporter                                   Serve /metrics on :9114
    orcus-exporter --retries 5 --no-nginx           Skip nginx, retry startup
    orcus-exporter check                             One-shot table of current values

Every option can also come from the environment, e.g.
ORCUS_EXPORTER_RETRIES=5 or ORCUS_EXPORTER_ORCUS_URI=http://orcus:3008/metrics.
"""

from __future__ import annotations

import logging

import click

from orcus_exporter import __version__
from orcus_exporter.config import (
    DEFAULT_LISTEN_ADDRESS,
    DEFAULT_METRICS_PATH,
    DEFAULT_MY_CNF,
    DEFAULT_NGINX_URI,
    DEFAULT_OAUTH2_PROXY_URI,
    DEFAULT_ORCHESTRATOR_URI,
    DEFAULT_ORCUS_URI,
    DEFAULT_RETRY_INTERVAL,
    DEFAULT_TIMEOUT,
    BackendSettings,
    ExporterConfig,
)
from orcus_exporter.errors import ExporterError
from orcus_exporter.exporter import BuiltRegistry, build_registry


log = logging.getLogger("orcus_exporter")

ENV_PREFIX = "ORCUS_EXPORTER"


def _bootstrap(config: ExporterConfig) -> BuiltRegistry:
    try:
        return build_registry(config)
    except ExporterError as exc:
        log.critical("Could not initialize collectors: %s", exc)
        raise SystemExit(1)


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="orcus-exporter")
@click.option("--listen-address", default=DEFAULT_LISTEN_ADDRESS, show_default=True,
              help="Address to listen on for web interface")
@click.option("--metrics-path", default=DEFAULT_METRICS_PATH, show_default=True,
              help="Path under which to expose metrics")
@click.option("--retries", default=0, type=click.IntRange(min=0), show_default=True,
              help="Number of retries on start in order to initialize collectors")
@click.option("--retry-interval", default=DEFAULT_RETRY_INTERVAL, show_default=True,
              help="Seconds between retries to connect to collector endpoints")
@click.option("--timeout", default=DEFAULT_TIMEOUT, show_default=True,
              help="Timeout in seconds for scraping a backend over HTTP")
@click.option("--ssl-verify/--no-ssl-verify", default=False, show_default=True,
              help="Verify SSL certificates")
@click.option("--nginx/--no-nginx", default=True, help="Collect data for nginx")
@click.option("--nginx-uri", default=DEFAULT_NGINX_URI, show_default=True,
              help="URI for scraping nginx stub_status")
@click.option("--oauth2-proxy/--no-oauth2-proxy", default=True, help="Collect data for oauth2_proxy")
@click.option("--oauth2-proxy-uri", default=DEFAULT_OAUTH2_PROXY_URI, show_default=True,
              help="URI for probing oauth2_proxy")
@click.option("--orcus/--no-orcus", default=True, help="Collect data for Orcus")
@click.option("--orcus-uri", default=DEFAULT_ORCUS_URI, show_default=True,
              help="URI for scraping Orcus metrics")
@click.option("--orchestrator/--no-orchestrator", default=True, help="Collect data for Orchestrator")
@click.option("--orchestrator-uri", default=DEFAULT_ORCHESTRATOR_URI, show_default=True,
              help="Orchestrator API root")
@click.option("--xtradb-cluster/--no-xtradb-cluster", default=True, help="Collect data for XtraDB cluster")
@click.option("--xtradb-cluster-my-cnf", default=DEFAULT_MY_CNF, show_default=True,
              help="Path to .my.cnf file to read MySQL credentials from")
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging")
@click.pass_context
def cli(ctx, listen_address: str, metrics_path: str, retries: int, retry_interval: float,
        timeout: float, ssl_verify: bool, nginx: bool, nginx_uri: str, oauth2_proxy: bool,
        oauth2_proxy_uri: str, orcus: bool, orcus_uri: str, orchestrator: bool,
        orchestrator_uri: str, xtradb_cluster: bool, xtradb_cluster_my_cnf: str, verbose: bool):
    """Orcus Exporter - Prometheus metrics for the Orcus database stack."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = ExporterConfig(
            listen_address=listen_address,
            metrics_path=metrics_path,
            retries=retries,
            retry_interval=retry_interval,
            timeout=timeout,
            ssl_verify=ssl_verify,
            nginx=BackendSettings(enabled=nginx, uri=nginx_uri),
            oauth2_proxy=BackendSettings(enabled=oauth2_proxy, uri=oauth2_proxy_uri),
            orcus=BackendSettings(enabled=orcus, uri=orcus_uri),
            orchestrator=BackendSettings(enabled=orchestrator, uri=orchestrator_uri),
            xtradb_cluster=BackendSettings(enabled=xtradb_cluster, uri=xtradb_cluster_my_cnf),
        )
    except ExporterError as exc:
        raise click.BadParameter(str(exc)) from exc

    ctx.ensure_object(dict)
    ctx.obj["config"] = config

    if ctx.invoked_subcommand is None:
        _serve(config)


def _serve(config: ExporterConfig) -> None:
    from orcus_exporter.server import create_server, serve_forever

    log.info("Starting Orcus Prometheus Exporter version=%s", __version__)
    built = _bootstrap(config)
    try:
        server = create_server(config.listen_address, built.registry, config.metrics_path)
        log.info(
            "Orcus Prometheus Exporter has successfully started on %s%s",
            config.listen_address, config.metrics_path,
        )
        serve_forever(server)
    finally:
        built.close()


@cli.command()
@click.pass_context
def check(ctx):
    """Bootstrap every enabled backend once and print the current samples."""
    from dataclasses import replace

    from rich.console import Console
    from rich.table import Table

    # No point waiting around in a one-shot check
    config = replace(ctx.obj["config"], retries=0)
    built = _bootstrap(config)

    try:
        console = Console()
        table = Table(show_header=True, header_style="bold")
        table.add_column("Metric")
        table.add_column("Labels", style="dim")
        table.add_column("Value", justify="right")

        for family in built.registry.collect():
            for sample in family.samples:
                value = f"{sample.value:g}"
                if sample.name.endswith("_up"):
                    color = "green" if sample.value == 1 else "red"
                    value = f"[{color}]{value}[/{color}]"
                labels = ", ".join(f"{k}={v}" for k, v in sorted(sample.labels.items()))
                table.add_row(f"[cyan]{sample.name}[/cyan]", labels, value)

        console.print(table)
    finally:
        built.close()


def main():
    cli(auto_envvar_prefix=ENV_PREFIX)


if __name__ == "__main__":
    main()
