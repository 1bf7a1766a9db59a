"""
Statistics Utilities

This module provides utility functions for calculating call quality
metrics and codec fidelity figures.
"""

import math
from typing import Dict, List, Sequence, Tuple

import numpy as np

# E-model equipment impairment (Ie) and packet loss robustness (Bpl) per codec
CODEC_IMPAIRMENT = {
    'g711': (0.0, 25.1),
    'g726': (7.0, 10.0),
}


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean, 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=np.float64)))


def one_way_delays(packet_times: Sequence[Tuple[float, float]]) -> np.ndarray:
    """Per-packet ``received - sent`` delays in arrival order."""
    if not packet_times:
        return np.zeros(0, dtype=np.float64)
    times = np.asarray(packet_times, dtype=np.float64)
    return times[:, 1] - times[:, 0]


def mean_delay(packet_times: Sequence[Tuple[float, float]], digits: int = 4) -> float:
    """Mean end-to-end delay, rounded to ``digits`` decimals."""
    delays = one_way_delays(packet_times)
    if delays.size == 0:
        return 0.0
    return round(float(np.mean(delays)), digits)


def mean_jitter(packet_times: Sequence[Tuple[float, float]]) -> float:
    """Mean absolute difference between consecutive packet delays.

    Args:
        packet_times: (sent_time, received_time) pairs in arrival order

    Returns:
        Inter-packet delay variation in seconds (0.0 with fewer than 2 packets)
    """
    delays = one_way_delays(packet_times)
    if delays.size < 2:
        return 0.0
    return float(np.mean(np.abs(np.diff(delays))))


def calculate_packet_loss_percent(missed: int, received: int) -> float:
    """Packet loss percentage from missed and received counts."""
    total = missed + received
    if total <= 0:
        return 0.0
    return missed / total * 100.0


def calculate_mos(
    packet_loss_rate: float,
    latency_ms: float,
    jitter_ms: float,
    codec: str = 'g711'
) -> float:
    """Calculate Mean Opinion Score (MOS) based on network parameters.

    Implements a simplified ITU-T E-model (G.107) for MOS estimation.

    Args:
        packet_loss_rate: Packet loss rate between 0.0 and 1.0
        latency_ms: One-way latency in milliseconds
        jitter_ms: Jitter in milliseconds
        codec: Codec name ('g711' or 'g726')

    Returns:
        Estimated MOS score between 1.0 (bad) and 4.5 (best narrowband)
    """
    ie, bpl = CODEC_IMPAIRMENT.get(codec.lower(), (10.0, 10.0))

    # Jitter buffers add roughly twice the jitter to the mouth-to-ear delay
    effective_latency = latency_ms + 2 * jitter_ms + 10

    # Factor in latency effects (Id)
    if effective_latency < 160:
        id_factor = effective_latency / 40
    else:
        id_factor = (effective_latency - 120) / 10

    # Factor in packet loss effects (Ie-eff)
    packet_loss_percent = max(0.0, min(1.0, packet_loss_rate)) * 100.0
    ie_eff = ie + (95 - ie) * packet_loss_percent / (packet_loss_percent + bpl)

    # Calculate R-value (ITU-T G.107)
    r_value = 93.2 - id_factor - ie_eff

    # Convert R-value to MOS (ITU-T P.800)
    if r_value < 0:
        mos = 1.0
    elif r_value > 100:
        mos = 4.5
    else:
        mos = 1 + 0.035 * r_value + r_value * (r_value - 60) * (100 - r_value) * 7e-6

    return max(1.0, min(4.5, mos))


def calculate_snr(original: np.ndarray, processed: np.ndarray) -> float:
    """Signal-to-noise ratio of a processed signal against the original.

    Args:
        original: Original samples
        processed: Samples after an encode/decode pass

    Returns:
        SNR in dB (``math.inf`` for an exact match)
    """
    min_len = min(len(original), len(processed))
    signal = np.asarray(original[:min_len], dtype=np.float64)
    noise = signal - np.asarray(processed[:min_len], dtype=np.float64)

    signal_power = np.mean(np.square(signal)) if min_len else 0.0
    noise_power = np.mean(np.square(noise)) if min_len else 0.0
    if noise_power == 0:
        return math.inf
    if signal_power == 0:
        return -math.inf
    return float(10 * np.log10(signal_power / noise_power))


def format_statistics_report(metrics: Dict[str, Dict[str, float]]) -> List[str]:
    """Format per-user metric dictionaries as aligned text lines."""
    lines = []
    for label, values in metrics.items():
        fields = ', '.join(f"{name}={value:.4f}" for name, value in values.items())
        lines.append(f"{label:>10}: {fields}")
    return lines
