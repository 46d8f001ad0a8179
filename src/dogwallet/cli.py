"""
dogwallet CLI - create or import a wallet, view doginals and send them.
"""

from __future__ import annotations

import asyncio
import json
import sys
from collections.abc import Coroutine
from pathlib import Path
from typing import Any, TypeVar

import typer
from loguru import logger

from dogwallet.backends import BlockchairBroadcaster, DogechainBackend, DoginalsClient
from dogwallet.config import Settings, get_settings
from dogwallet.constants import KOINU_PER_DOGE
from dogwallet.errors import WalletError
from dogwallet.models import Credentials, WalletState, describe_inscription
from dogwallet.storage import JsonFileStore
from dogwallet.wallet.keys import (
    credentials_from_mnemonic,
    credentials_from_wif,
    generate_credentials,
    is_valid_address,
    private_key_to_wif,
)
from dogwallet.wallet.service import WalletService

T = TypeVar("T")

app = typer.Typer(
    name="dogwallet",
    help="Dogecoin doginals wallet",
    add_completion=False,
)


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def _settings(store_path: Path | None, log_level: str | None) -> Settings:
    settings = get_settings()
    if store_path is not None:
        settings.store_path = store_path
    setup_logging(log_level or settings.log_level)
    return settings


def build_service(settings: Settings) -> WalletService:
    return WalletService(
        store=JsonFileStore(settings.store_path),
        indexer=DogechainBackend(settings.dogechain_url, timeout=settings.request_timeout),
        content_index=DoginalsClient(settings.doginals_url, timeout=settings.request_timeout),
        broadcaster=BlockchairBroadcaster(
            settings.blockchair_url, timeout=settings.request_timeout
        ),
        transfer_config=settings.transfer_config(),
        num_retries=settings.num_retries,
        retry_delay=settings.retry_delay,
    )


def format_doge(koinu: int) -> str:
    return f"{koinu / KOINU_PER_DOGE:.8f} DOGE"


def _run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a command coroutine, turning wallet errors into exit code 1."""
    try:
        return asyncio.run(coro)
    except WalletError as e:
        logger.error(str(e))
        raise typer.Exit(1) from e


async def _require_wallet(service: WalletService) -> WalletState:
    state = await service.load()
    if state.credentials is None:
        logger.error("No wallet found. Use 'generate', 'import-mnemonic' or 'import-key' first")
        raise typer.Exit(1)
    if not state.accepted_terms:
        logger.error("Terms not accepted. Run 'dogwallet accept-terms' first")
        raise typer.Exit(1)
    return state


async def _store(settings: Settings, credentials: Credentials) -> None:
    service = build_service(settings)
    try:
        state = await service.load()
        if state.credentials is not None:
            logger.error("A wallet already exists. Run 'dogwallet reset' first")
            raise typer.Exit(1)
        await service.store_credentials(state, credentials)
    finally:
        await service.close()


StoreOption = typer.Option(None, "--store", "-s", help="Wallet store file")
LogLevelOption = typer.Option(None, "--log-level", "-l")


@app.command()
def generate(
    store_path: Path | None = StoreOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """Create a new wallet from a fresh 12-word mnemonic."""
    settings = _settings(store_path, log_level)
    credentials = generate_credentials()

    _run(_store(settings, credentials))

    typer.echo("\n" + "=" * 80)
    typer.echo("GENERATED MNEMONIC - WRITE THIS DOWN AND KEEP IT SAFE!")
    typer.echo("=" * 80)
    typer.echo(f"\n{credentials.mnemonic}\n")
    typer.echo("=" * 80)
    typer.echo(f"\nAddress: {credentials.address}\n")


@app.command("import-mnemonic")
def import_mnemonic(
    mnemonic: str = typer.Option(
        ..., "--mnemonic", envvar="MNEMONIC", prompt=True, hide_input=True
    ),
    store_path: Path | None = StoreOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """Import a wallet from twelve words."""
    settings = _settings(store_path, log_level)
    try:
        credentials = credentials_from_mnemonic(mnemonic)
    except WalletError as e:
        logger.error(str(e))
        raise typer.Exit(1) from e

    _run(_store(settings, credentials))
    typer.echo(f"Address: {credentials.address}")


@app.command("import-key")
def import_key(
    private_key: str = typer.Option(
        ..., "--private-key", envvar="PRIVATE_KEY", prompt=True, hide_input=True
    ),
    store_path: Path | None = StoreOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """Import a wallet from a WIF private key."""
    settings = _settings(store_path, log_level)
    try:
        credentials = credentials_from_wif(private_key)
    except WalletError as e:
        logger.error(str(e))
        raise typer.Exit(1) from e

    _run(_store(settings, credentials))
    typer.echo(f"Address: {credentials.address}")


@app.command("accept-terms")
def accept_terms(
    store_path: Path | None = StoreOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """Accept the terms of use."""
    settings = _settings(store_path, log_level)

    async def _accept() -> None:
        service = build_service(settings)
        try:
            await service.accept_terms(await service.load())
        finally:
            await service.close()

    _run(_accept())


@app.command()
def info(
    as_json: bool = typer.Option(False, "--json", help="Print the wallet state as JSON"),
    store_path: Path | None = StoreOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """Refresh and display address, balance and doginals."""
    settings = _settings(store_path, log_level)
    _run(_show_wallet_info(settings, as_json))


async def _show_wallet_info(settings: Settings, as_json: bool) -> None:
    service = build_service(settings)
    try:
        state = await _require_wallet(service)
        state = await service.refresh(state)

        if as_json:
            print(json.dumps(state.to_dict(), indent=2))
            return

        assert state.credentials is not None
        print(f"\nAddress: {state.credentials.address}")
        print(f"Balance: {format_doge(state.balance)}")

        if state.num_unconfirmed > 0:
            suffix = "s" if state.num_unconfirmed > 1 else ""
            print(f"{state.num_unconfirmed} unconfirmed transaction{suffix}...")

        if not state.inscriptions:
            if not state.num_unconfirmed:
                print("No doginals")
            return

        print(f"\nDoginals ({len(state.inscriptions)}):")
        for inscription in state.inscriptions.values():
            print(
                f"  #{inscription.number:<10} {inscription.content_type:<24} "
                f"{inscription.outpoint}  {inscription.id}"
            )

    finally:
        await service.close()


@app.command()
def show(
    inscription_id: str = typer.Argument(..., help="Inscription id"),
    store_path: Path | None = StoreOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """Display a cached doginal."""
    settings = _settings(store_path, log_level)

    async def _show() -> None:
        service = build_service(settings)
        try:
            inscription = await service.get_inscription(inscription_id)
        finally:
            await service.close()

        if inscription is None:
            logger.error(f"Inscription {inscription_id} is not in the wallet cache")
            raise typer.Exit(1)

        summary = describe_inscription(inscription)
        print(f"\nShibescription {summary['number']}")
        print(f"  Id:       {summary['id']}")
        print(f"  Output:   {summary['outpoint']}")
        print(f"  Type:     {summary['content_type']}")
        print(f"  Link:     {settings.doginals_url.rstrip('/')}/shibescription/{summary['id']}")
        if summary["text"] is not None:
            print(f"\n{summary['text']}\n")

    _run(_show())


@app.command()
def send(
    inscription_id: str = typer.Argument(..., help="Inscription id to send"),
    destination: str = typer.Argument(..., help="Recipient Dogecoin address"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    store_path: Path | None = StoreOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """Send a doginal to another address."""
    settings = _settings(store_path, log_level)

    if not is_valid_address(destination):
        logger.error(f"Invalid address: {destination}")
        raise typer.Exit(1)

    if not yes:
        typer.confirm(f"Send {inscription_id} to {destination}?", abort=True)

    _run(_send(settings, inscription_id, destination))


async def _send(settings: Settings, inscription_id: str, destination: str) -> None:
    service = build_service(settings)
    try:
        state = await _require_wallet(service)
        state = await service.refresh(state)

        inscription = state.inscriptions.get(inscription_id)
        if inscription is None:
            inscription = await service.get_inscription(inscription_id)
        if inscription is None:
            logger.error(f"Inscription {inscription_id} is not in this wallet")
            raise typer.Exit(1)

        txid = await service.send_inscription(state, inscription, destination)
        print(f"\nSent\n{txid}")

    finally:
        await service.close()


@app.command()
def export(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    store_path: Path | None = StoreOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """Print the private key (WIF), mnemonic and derivation path for backup."""
    settings = _settings(store_path, log_level)

    if not yes:
        typer.confirm("This prints your private key to the terminal. Continue?", abort=True)

    async def _export() -> Credentials:
        service = build_service(settings)
        try:
            state = await service.load()
        finally:
            await service.close()

        if state.credentials is None:
            logger.error("No wallet found. Use 'generate', 'import-mnemonic' or 'import-key' first")
            raise typer.Exit(1)
        return state.credentials

    credentials = _run(_export())

    typer.echo(f"\nAddress:     {credentials.address}")
    typer.echo(f"Private key: {private_key_to_wif(credentials.private_key)}")
    typer.echo(f"Mnemonic:    {credentials.mnemonic or '-'}")
    typer.echo(f"Derivation:  {credentials.derivation or '-'}\n")


@app.command()
def reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    store_path: Path | None = StoreOption,
    log_level: str | None = LogLevelOption,
) -> None:
    """Delete the wallet key and all cached data."""
    settings = _settings(store_path, log_level)

    if not yes:
        typer.confirm(
            "This deletes your private key. Make sure you have a backup. Continue?", abort=True
        )

    async def _reset() -> None:
        service = build_service(settings)
        try:
            await service.reset()
        finally:
            await service.close()

    _run(_reset())
    typer.echo("Wallet reset")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
