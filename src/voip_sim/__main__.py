"""
Command-line interface for the VoIP call simulator.
"""

import sys
import argparse
import logging
from typing import Any, Dict, List

import numpy as np

from .codecs import CodecType, create_codec
from .errors import VoIPError
from .simulation import CallSimulation, run_simulations, save_report
from .utils.audio import read_wav, write_wav, split_frames
from .utils.config import (
    add_common_arguments, get_default_config, load_config_from_args,
    merge_configs, save_config
)
from .utils.logging import setup_logger
from .utils.statistics import calculate_snr, format_statistics_report

logger = logging.getLogger('voip_sim')


def parse_args(argv: List[str] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Arguments to parse (defaults to ``sys.argv[1:]``)

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        description="VoIP Call Simulator",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    add_common_arguments(parser)

    subparsers = parser.add_subparsers(
        title='commands',
        dest='command',
        help='Command to run'
    )

    # Simulate command
    simulate_parser = subparsers.add_parser(
        'simulate',
        help='Simulate a call and report its quality metrics'
    )
    _add_call_arguments(simulate_parser)
    simulate_parser.add_argument(
        '--codec',
        help="Codec used by the call",
        choices=[codec.value for codec in CodecType]
    )
    simulate_parser.add_argument(
        '--rate',
        help="G.726 bit rate in kbit/s",
        type=int
    )
    simulate_parser.add_argument(
        '--dump',
        help="CSV file receiving the first frame of user 0",
        type=str
    )
    simulate_parser.add_argument(
        '-o', '--output',
        help="JSON file receiving the session report",
        type=str
    )

    # Compare command
    compare_parser = subparsers.add_parser(
        'compare',
        help='Simulate the same call with several codecs'
    )
    _add_call_arguments(compare_parser)
    compare_parser.add_argument(
        '--codecs',
        help="Comma-separated list of codecs to compare",
        type=str,
        default='g711,g726'
    )
    compare_parser.add_argument(
        '--rates',
        help="Comma-separated list of G.726 rates to test (in kbit/s)",
        type=str,
        default='16,24,32,40'
    )
    compare_parser.add_argument(
        '-o', '--output',
        help="JSON file receiving all session reports",
        type=str
    )

    # Transcode command
    transcode_parser = subparsers.add_parser(
        'transcode',
        help='Encode and decode a WAV file with a codec'
    )
    transcode_parser.add_argument(
        '-i', '--input',
        help="Path to input WAV file",
        type=str,
        required=True
    )
    transcode_parser.add_argument(
        '-o', '--output',
        help="Path to decoded WAV file",
        type=str,
        required=True
    )
    transcode_parser.add_argument(
        '--codec',
        help="Codec to apply",
        choices=[codec.value for codec in CodecType],
        default='g711'
    )
    transcode_parser.add_argument(
        '--rate',
        help="G.726 bit rate in kbit/s",
        type=int,
        default=32
    )

    # Generate config command
    config_parser = subparsers.add_parser(
        'config',
        help='Generate default configuration file'
    )
    config_parser.add_argument(
        '-o', '--output',
        help="Output file path",
        type=str,
        required=True
    )
    config_parser.add_argument(
        '--format',
        help="Output file format",
        choices=['json', 'yaml'],
        default='json'
    )

    return parser.parse_args(argv)


def _add_call_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--users', help="Number of users on the call", type=int)
    parser.add_argument('--duration', help="Call duration in seconds", type=float)
    parser.add_argument('--delay', help="Channel delay in milliseconds", type=float)
    parser.add_argument('--jitter', help="Channel jitter in milliseconds", type=float)
    parser.add_argument('--loss', help="Packet loss probability (0.0 to 1.0)", type=float)
    parser.add_argument('--reorder', help="Reordering probability (0.0 to 1.0)", type=float)
    parser.add_argument('--duplicate', help="Duplication probability (0.0 to 1.0)", type=float)
    parser.add_argument('--seed', help="Seed of the channel model", type=int)
    parser.add_argument(
        '--loss-basis',
        help="Denominator of the packet loss percentage",
        choices=['per_user', 'session']
    )


def _configure_logging(config: Dict[str, Any]) -> None:
    general = config['general']
    setup_logger('voip_sim', general['log_level'], general['log_file'],
                 json_format=general['json_logs'])


def _print_summary(result: Dict[str, Any]) -> None:
    report = result['report']
    codec = result['codec']
    label = codec['name'] if 'rate' not in codec else f"{codec['name']}@{codec['rate']}k"
    print(f"Codec: {label}, users: {result['num_users']}, packets sent: {result['packets_sent']}")
    per_user = {f"user {user}": metrics for user, metrics in report['per_user'].items()}
    per_user['aggregate'] = report['aggregate']
    for line in format_statistics_report(per_user):
        print(line)
    print(f"Estimated MOS: {report['mos']:.2f}")


def run_simulate(args: argparse.Namespace, config: Dict[str, Any]) -> None:
    """Run simulate command."""
    result = CallSimulation(config).run()
    _print_summary(result)
    if args.output:
        save_report(result, args.output)
        print(f"Report saved to {args.output}")


def run_compare(args: argparse.Namespace, config: Dict[str, Any]) -> None:
    """Run codec comparison command."""
    codec_names = [name.strip() for name in args.codecs.split(',') if name.strip()]
    rates = [int(rate.strip()) for rate in args.rates.split(',') if rate.strip()]

    configs = []
    for codec_name in codec_names:
        codec_type = CodecType.parse(codec_name)
        codec_rates = rates if codec_type is CodecType.G726 else [None]
        for rate in codec_rates:
            override: Dict[str, Any] = {'codec': {'type': codec_type.value}}
            if rate is not None:
                override['codec']['rate'] = rate
            configs.append(merge_configs(config, override))

    results = run_simulations(configs)
    for result in results:
        _print_summary(result)
        print()
    if args.output:
        save_report({'results': results}, args.output)
        print(f"Comparison saved to {args.output}")


def run_transcode(args: argparse.Namespace) -> None:
    """Run transcode command."""
    samples, sample_rate = read_wav(args.input)
    if sample_rate != 8000:
        logger.warning(f"{args.input} is sampled at {sample_rate} Hz; "
                       f"the codecs are specified for 8000 Hz")

    codec = create_codec(args.codec, rate=args.rate, sample_rate=sample_rate)
    if codec.frame_size == 0:
        raise VoIPError(f"Codec {codec} produces no output at rate {args.rate}")

    decoded = [codec.decode_frame(codec.encode_frame(frame))
               for frame in split_frames(samples, codec.frame_samples)]
    output = np.concatenate(decoded)[:len(samples)] if decoded else np.zeros(0, dtype=np.int16)
    write_wav(args.output, output, sample_rate)

    print(f"Codec: {codec}")
    print(f"Bitrate: {codec.bitrate / 1000:.1f} kbit/s, "
          f"compression ratio: {codec.get_compression_ratio():.3f}")
    print(f"SNR: {calculate_snr(samples, output):.2f} dB")
    print(f"Decoded audio saved to {args.output}")


def generate_config(args: argparse.Namespace) -> None:
    """Generate default configuration file."""
    save_config(get_default_config(), args.output, args.format)
    print(f"Default configuration saved to {args.output}")


def main(argv: List[str] = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    if args.command is None:
        print("No command specified")
        print("Use --help for command usage")
        sys.exit(1)

    try:
        if args.command == 'config':
            generate_config(args)
            return

        config = load_config_from_args(args)
        _configure_logging(config)

        if args.command == 'simulate':
            run_simulate(args, config)
        elif args.command == 'compare':
            run_compare(args, config)
        elif args.command == 'transcode':
            run_transcode(args)
    except (VoIPError, OSError, RuntimeError) as e:
        print(f"Error running {args.command}: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
