import argparse

from cursed_composer.configuration import (
    ComposeSettings,
    compose_settings,
    get_default_config,
    load_config_file,
    save_config_file,
)

DEFAULT_SEED = "Mahler"


def compose_audio(
    seed: str,
    output_wav: str,
    sample_rate: int,
    max_duration_s: float,
    reverb: bool,
    workers: int,
) -> int:
    from cursed_composer.arrangement import GenerationError
    from cursed_composer.composer import compose_to_file

    try:
        path, result = compose_to_file(
            seed,
            output_wav,
            sample_rate=sample_rate,
            max_duration_s=max_duration_s,
            reverb=reverb,
            workers=workers,
        )
    except GenerationError as exc:
        print(f"Composition failed: {exc}")
        return 4
    except OSError as exc:
        print(f"Failed to write {output_wav}: {exc}")
        return 3

    print(f"Wrote {result.duration_s:.1f} seconds of audio to {path}")
    if result.truncated:
        print(f"Arrangement exceeded {max_duration_s:.1f} seconds and was truncated.")
    return 0


def print_parameters(seeds: list[str]) -> int:
    from cursed_composer.catalog import select_progression
    from cursed_composer.seed import derive_parameters, hash_seed
    from cursed_composer.tonal import DiatonicOracle, Pitch

    oracle = DiatonicOracle()
    print("seed,hash,key,mode,tempo_bpm,progression,arpeggio_index,swing")
    for seed in seeds:
        params = derive_parameters(hash_seed(seed))
        progression = select_progression(params.progression_index)
        key = oracle.pitch_to_display(Pitch(params.root_letter, params.root_accidental, 3))
        print(
            f"{seed},{params.seed},{key},{progression.scale_kind.value},{params.tempo_bpm},"
            f"{progression.name},{params.arpeggio_index},{int(params.swing)}"
        )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compose and render a stereo WAV from a seed string")
    subparsers = parser.add_subparsers(dest="command")

    compose = subparsers.add_parser("compose", help="Render the arrangement for a seed to a WAV file")
    compose.add_argument("seed", nargs="?", default=DEFAULT_SEED, help=f"Seed text (default: {DEFAULT_SEED}).")
    compose.add_argument("--output", type=str, default=None, help="Output WAV path (default: output.wav).")
    compose.add_argument("--sample-rate", type=int, default=None, help="Sample rate in Hz (default: 44100).")
    compose.add_argument(
        "--max-duration-seconds",
        type=float,
        default=None,
        help="Buffer capacity; later material is truncated (default: 45.0).",
    )
    compose.add_argument("--no-reverb", action="store_true", help="Skip the delay reverb.")
    compose.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Threads used to render voices in parallel (default: 1).",
    )
    compose.add_argument("--config", type=str, default=None, help="JSON config file with a 'compose' section.")
    compose.add_argument(
        "--save-config",
        type=str,
        default=None,
        help="Write the effective compose settings to this JSON path.",
    )

    params = subparsers.add_parser("params", help="Print the musical parameters derived from seeds")
    params.add_argument("seeds", nargs="+", help="One or more seed strings.")
    return parser


def _validate_compose_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    if args.sample_rate is not None and args.sample_rate <= 0:
        parser.error("--sample-rate must be > 0.")
    if args.max_duration_seconds is not None and args.max_duration_seconds <= 0:
        parser.error("--max-duration-seconds must be > 0.")
    if args.workers is not None and args.workers <= 0:
        parser.error("--workers must be > 0.")


def _resolve_compose_settings(parser: argparse.ArgumentParser, args: argparse.Namespace) -> ComposeSettings:
    config = get_default_config()
    if args.config is not None:
        try:
            config = load_config_file(args.config)
        except (OSError, ValueError) as exc:
            parser.error(f"Could not load config {args.config}: {exc}")
    try:
        return compose_settings(
            config,
            output=args.output,
            sample_rate=args.sample_rate,
            max_duration_seconds=args.max_duration_seconds,
            reverb=False if args.no_reverb else None,
            workers=args.workers,
        )
    except ValueError as exc:
        parser.error(f"Invalid compose settings: {exc}")


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command in (None, "compose"):
        if args.command == "compose":
            _validate_compose_args(parser, args)
            settings = _resolve_compose_settings(parser, args)
            seed = args.seed
            if args.save_config is not None:
                saved = save_config_file(args.save_config, settings.to_config())
                print(f"Saved settings to {saved}")
        else:
            settings = compose_settings(get_default_config())
            seed = DEFAULT_SEED
        raise SystemExit(
            compose_audio(
                seed=seed,
                output_wav=settings.output,
                sample_rate=settings.sample_rate,
                max_duration_s=settings.max_duration_seconds,
                reverb=settings.reverb,
                workers=settings.workers,
            )
        )

    if args.command == "params":
        raise SystemExit(print_parameters(args.seeds))

    parser.error(f"Unsupported command: {args.command}")


if __name__ == "__main__":
    main()
