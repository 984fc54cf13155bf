from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Sequence

import click
from rich.console import Console
from rich.table import Table

from catan_game.config import RulesetVariant, ServiceConfig, config_for_variant
from catan_game.domain.board import BoardState, HexTile, build_standard_board
from catan_game.domain.randomizer import generate_randomized_board
from catan_game.game import (
    FourToOneTradingRule,
    GameEngine,
    GamePhase,
    LocalRandomSource,
    PublicGameView,
    load_snapshot,
    save_snapshot,
)
from catan_game.logging_config import configure_logging
from catan_game.seeding import board_from_beacon, derive_seed

UINT32 = click.IntRange(0, 0xFFFFFFFF)


def _split_csv(value: str) -> List[str]:
    return [x.strip() for x in value.split(",") if x.strip()]


def tiles_table(tiles: Sequence[HexTile], *, robber_tile_id: Optional[str] = None) -> Table:
    table = Table(title="Board")
    table.add_column("TILE", justify="center", style="cyan", no_wrap=True)
    table.add_column("Q", justify="right")
    table.add_column("R", justify="right")
    table.add_column("RESOURCE")
    table.add_column("NUMBER", justify="right")
    for tile in tiles:
        number = str(tile.token_number) if tile.token_number is not None else "-"
        marker = " (robber)" if tile.id == robber_tile_id else ""
        table.add_row(tile.id, str(tile.q), str(tile.r), tile.resource.value + marker, number)
    return table


def players_table(view: PublicGameView, engine: GameEngine) -> Table:
    table = Table(title=f"Turn {view.turn} - {view.phase.value}")
    table.add_column("PLAYER", style="cyan", no_wrap=True)
    table.add_column("NAME")
    table.add_column("VP", justify="right")
    table.add_column("SETTLEMENTS")
    table.add_column("HAND")
    for player in view.players:
        owned = [node_id for node_id, owner in view.node_ownership.items() if owner == player.id]
        hand = engine.get_player_resources(player.id)
        hand_text = ", ".join(f"{resource.value}:{amount}" for resource, amount in hand.items() if amount)
        current = " *" if player.id == view.current_player_id else ""
        table.add_row(player.id + current, player.name, str(player.victory_points), " ".join(owned), hand_text or "-")
    return table


def bank_table(view: PublicGameView) -> Table:
    table = Table(title="Bank")
    for resource in view.bank:
        table.add_column(resource.value.upper(), justify="right")
    table.add_row(*(str(amount) for amount in view.bank.values()))
    return table


@click.group()
@click.option("--verbose", is_flag=True, default=False, help="Show engine debug logs.")
def cli(verbose: bool) -> None:
    """Settlers-on-a-hex-board engine tools."""
    configure_logging("development", level=logging.DEBUG if verbose else logging.WARNING)


@cli.command()
@click.option("--seed", type=UINT32, default=None, help="Shuffle the board with this uint32 seed.")
@click.option("--beacon", is_flag=True, default=False, help="Fetch the shuffle seed from the drand beacon.")
def board(seed: Optional[int], beacon: bool) -> None:
    """Print the tile layout."""
    console = Console()
    if beacon:
        service = ServiceConfig()
        built, seed = board_from_beacon(service.beacon_endpoint, timeout_s=service.request_timeout_s)
    else:
        built = _build_board(seed)
    label = f"seed={seed}" if seed is not None else "default board"
    console.print(tiles_table(built.tiles, robber_tile_id=built.desert_tile_id()))
    console.print(f"{len(built.tiles)} tiles, {len(built.nodes)} settlement spots ({label}).")


@cli.command()
@click.option("--players", "player_names", default="Alice,Bob", show_default=True, help="Comma separated names.")
@click.option("--seed", type=UINT32, default=None, help="Board shuffle seed. Default board when omitted.")
@click.option("--dice-seed", type=int, default=None, help="Seed for the local dice. Derived from --seed when omitted.")
@click.option("--rolls", type=click.IntRange(0, None), default=8, show_default=True)
@click.option(
    "--variant",
    type=click.Choice([variant.value for variant in RulesetVariant], case_sensitive=False),
    default=RulesetVariant.STANDARD.value,
    show_default=True,
)
@click.option("--save", "save_path", type=click.Path(dir_okay=False, path_type=Path), default=None)
def demo(
    player_names: str,
    seed: Optional[int],
    dice_seed: Optional[int],
    rolls: int,
    variant: str,
    save_path: Optional[Path],
) -> None:
    """Replay a session: first legal setup spots, then a number of rolls."""
    console = Console()
    names = _split_csv(player_names)
    if len(names) < 2:
        raise click.BadParameter("At least two players are required.", param_hint="--players")
    if dice_seed is None and seed is not None:
        dice_seed = derive_seed(seed, "dice")

    config = config_for_variant(variant)
    built = _build_board(seed)
    engine = GameEngine(
        LocalRandomSource(dice_seed),
        FourToOneTradingRule(config.trade_ratio),
        tiles=built.tiles,
        config=config,
    )
    for name in names:
        engine.add_player(name)
    engine.start_game()

    while engine.phase is GamePhase.SETUP_PLACEMENT:
        spots = engine.get_available_settlement_spots()
        engine.place_initial_settlement(engine.current_player_id, spots[0])

    asyncio.run(_play_rolls(engine, rolls))

    view = engine.get_public_state()
    console.print(players_table(view, engine))
    console.print(bank_table(view))
    for line in engine.event_log[-10:]:
        console.print(f"  {line}")
    if save_path is not None:
        save_snapshot(engine, save_path)
        console.print(f"[green]Saved.[/green] Snapshot: {save_path}")


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def show(path: Path) -> None:
    """Print the public view stored in a snapshot file."""
    console = Console()
    engine = load_snapshot(path, LocalRandomSource(), FourToOneTradingRule())
    view = engine.get_public_state()
    console.print(tiles_table(view.tiles, robber_tile_id=view.robber_tile_id))
    console.print(players_table(view, engine))
    console.print(bank_table(view))


async def _play_rolls(engine: GameEngine, rolls: int) -> None:
    for _ in range(rolls):
        await engine.roll_and_distribute()
        current = engine.current_player_id
        if engine.phase is GamePhase.AWAITING_ROBBER_MOVE:
            view = engine.get_public_state()
            target = next(tile.id for tile in view.tiles if tile.id != view.robber_tile_id)
            victim = next(
                (
                    player.id
                    for player in view.players
                    if player.id != current and sum(engine.get_player_resources(player.id).values()) > 0
                ),
                None,
            )
            engine.move_robber(target, victim)
        spots = engine.get_available_settlement_spots()
        if spots:
            engine.build_settlement_at(current, spots[0])
        engine.next_player()


def _build_board(seed: Optional[int]) -> BoardState:
    if seed is None:
        return build_standard_board()
    return generate_randomized_board(seed)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
