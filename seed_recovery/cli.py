import os
from typing import Optional

import click

from seed_recovery import console
from seed_recovery.candidates import build_candidate
from seed_recovery.config import (
    CHECKPOINT_FILE,
    DEFAULT_WORKERS,
    SAVE_INTERVAL,
    ConfigError,
    RunOptions,
    SearchConfig,
    parse_positions,
)
from seed_recovery.index_space import search_size
from seed_recovery.oracle import (
    COINS,
    TRON,
    Bip44Oracle,
    check_phrase,
    decode_target,
    encode_address,
    english_wordlist,
)
from seed_recovery.supervisor import SearchSupervisor

CANCEL_WORD = "cancel"


def ask(text: str, given: Optional[str]) -> Optional[str]:
    """Prompt unless the value was given on the command line; None means the user cancelled."""
    value = given if given is not None else click.prompt(text, default="", show_default=False)
    value = value.strip()
    if value == CANCEL_WORD:
        return None
    return value


@click.command()
@click.option("--workers", "-w", type=int, default=DEFAULT_WORKERS, show_default=True,
              help="Number of worker threads.")
@click.option("--no-progress", is_flag=True, help="Do not read or write the checkpoint file.")
@click.option("--checkpoint", "checkpoint_path", default=CHECKPOINT_FILE, show_default=True,
              type=click.Path(dir_okay=False), help="Checkpoint file.")
@click.option("--save-interval", type=float, default=SAVE_INTERVAL, show_default=True,
              help="Seconds between checkpoint saves.")
@click.option("--coin", type=click.Choice(sorted(COINS)), default=TRON, show_default=True,
              help="Address type of the target.")
@click.option("--allow-repeated", is_flag=True,
              help="Also test phrases that use the same word twice.")
@click.option("--verify-checksum", is_flag=True,
              help="Skip derivation for phrases with an invalid BIP39 checksum.")
@click.option("--positions", default=None,
              help="Comma separated positions (0-11) of the known words.")
@click.option("--words", default=None, help="Known words; '?' marks a missing word.")
@click.option("--address", default=None, help="Target wallet address.")
def cli(workers: int, no_progress: bool, checkpoint_path: str, save_interval: float, coin: str,
        allow_repeated: bool, verify_checksum: bool, positions: Optional[str],
        words: Optional[str], address: Optional[str]):
    """Recover missing words of a 12-word seed phrase from its wallet address."""
    console.info(f"Number of CPUs available: {os.cpu_count()}")

    try:
        options = RunOptions(
            workers=workers,
            checkpoint_path=checkpoint_path,
            save_checkpoints=not no_progress,
            save_interval=save_interval,
            skip_repeated=not allow_repeated,
        )
    except ConfigError as e:
        raise click.UsageError(str(e))
    console.info(f"Using {options.workers} workers.")

    words_text = ask("Please write as many words as you have (space-separated, '?' for a missing word)", words)
    if words_text is None:
        console.info("Cancelling the operation as per user request")
        return
    address_text = ask("Please give me the wallet address you would like to match", address)
    if address_text is None:
        console.info("Cancelling the operation as per user request")
        return

    try:
        target = decode_target(address_text, coin)
        config = SearchConfig.from_phrase(
            words_text.split(),
            english_wordlist(),
            positions=parse_positions(positions) if positions else None,
        )
    except ConfigError as e:
        raise click.UsageError(str(e))

    oracle = Bip44Oracle(coin, verify_checksum=verify_checksum)

    if config.missing_count == 0:
        phrase = build_candidate(config, ())
        derived, matched = check_phrase(phrase, oracle, target)
        if matched:
            console.found(f"Found match!\nAddress: {encode_address(derived, coin)}\nMnemonic: {' '.join(phrase)}")
        else:
            console.info(f"No match found. Generated address: {encode_address(derived, coin)}")
        return

    console.info("Entering brute-force mode!")
    console.info(f"Missing positions: {list(config.missing_positions)}")
    total = search_size(config.wordlist_size, config.missing_count)
    console.info(f"Total combinations to test: {total:,}")
    console.info(f"Estimated time: {console.format_time(console.estimate_duration(total, options.workers))}")
    console.info(f"Start timestamp: {console.timestamp()}")

    result = SearchSupervisor(config, oracle, target, options).run()

    console.done(f"elapsed {result.elapsed:.1f}s - tested {result.tested:,}, skipped {result.skipped:,}")
    if result.match is not None:
        console.found(f"FOUND MATCH!\nAddress: {encode_address(result.match.address, coin)}\n"
                      f"Words: {result.match.phrase}")
    elif result.cancelled:
        console.info(f"Stopped before the search space was exhausted, progress kept in {checkpoint_path}"
                     if options.save_checkpoints else "Stopped before the search space was exhausted")
    else:
        console.info("Not found in the search space.")
    for range_id in result.failed_ranges:
        console.warn(f"Range {range_id} did not finish, run again to retry it")
    console.info(f"Finish timestamp: {console.timestamp()}")


if __name__ == "__main__":
    cli()
