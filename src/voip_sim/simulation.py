"""
Call Simulation

This module drives a complete simulated call: every client sends its
voice stream through the channel model to the server, and the server's
session report is collected at teardown.
"""

import os
import json
import heapq
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from voip_sim.codecs import create_codec
from voip_sim.session.channel import ChannelSimulator, NetworkConditions
from voip_sim.session.client import VoIPClient
from voip_sim.session.server import VoIPServer
from voip_sim.session.tracker import ArrivalOutcome
from voip_sim.utils.config import ConfigDict, get_default_config, merge_configs, validate_config
from voip_sim.errors import ConfigurationError

logger = logging.getLogger(__name__)


class CallSimulation:
    """Simulated multi-user call over an impaired channel."""

    def __init__(self, config: Optional[ConfigDict] = None):
        """Initialize the simulation.

        Args:
            config: Configuration dictionary, merged over the defaults

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        self.config = merge_configs(get_default_config(), config or {})
        errors = validate_config(self.config)
        if errors:
            raise ConfigurationError("Invalid configuration: " + "; ".join(errors))

        codec_config = self.config['codec']
        call = self.config['call']
        network = self.config['network']

        self.server = VoIPServer(
            call['num_users'],
            codec=codec_config['type'],
            rate=codec_config['rate'],
            frame_samples=codec_config['frame_samples'],
            sample_rate=codec_config['sample_rate'],
            loss_basis=self.config['statistics']['loss_basis'],
        )
        self.clients = [self._create_client(user_id) for user_id in range(call['num_users'])]
        self.channel = ChannelSimulator(NetworkConditions.from_config(network), seed=network['seed'])

        self.stop_time = call['stop_time']
        if self.stop_time is None:
            self.stop_time = call['start'] + call['duration']
        self.teardown_time = self.stop_time + call['teardown_grace']

        self.outcomes: Dict[str, int] = {outcome.value: 0 for outcome in ArrivalOutcome}

    def _create_client(self, user_id: int) -> VoIPClient:
        codec_config = self.config['codec']
        call = self.config['call']
        codec = create_codec(codec_config['type'], rate=codec_config['rate'],
                             frame_samples=codec_config['frame_samples'],
                             sample_rate=codec_config['sample_rate'])
        return VoIPClient(
            user_id, codec,
            start=call['start'],
            duration=call['duration'],
            frequency=call['frequency'],
            packet_rate=call['packet_rate'],
            tone_frequency=call['tone_frequency'],
            tone_amplitude=call['tone_amplitude'],
            dump_path=call['dump_path'],
        )

    def _send_events(self, client: VoIPClient) -> Iterator[Tuple[float, int]]:
        for send_time in client.schedule(self.stop_time):
            yield send_time, client.user_id

    def _deliver(self, arrival_time: float, data: bytes) -> None:
        outcome = self.server.handle_datagram(data, arrival_time)
        self.outcomes[outcome.value] += 1

    def run(self) -> Dict[str, Any]:
        """Run the call to teardown.

        Returns:
            Dictionary with the session report, channel and server counters
        """
        codec_config = self.config['codec']
        logger.info(f"Simulating {len(self.clients)} users with {codec_config['type']} "
                    f"until {self.stop_time:.3f}s (teardown at {self.teardown_time:.3f}s)")

        # Send events of all clients in time order; ties go to the lower user id
        sends = heapq.merge(*[self._send_events(client) for client in self.clients])
        for send_time, user_id in sends:
            for arrival_time, data in self.channel.deliver_until(send_time):
                self._deliver(arrival_time, data)
            self.channel.transmit(self.clients[user_id].send(send_time), send_time)

        for arrival_time, data in self.channel.deliver_until(self.teardown_time):
            self._deliver(arrival_time, data)

        report = self.server.stop()

        # Still in flight at teardown
        for arrival_time, data in self.channel.drain():
            self._deliver(arrival_time, data)

        return {
            'codec': self.server.codec_info,
            'num_users': len(self.clients),
            'stop_time': self.stop_time,
            'teardown_time': self.teardown_time,
            'packets_sent': sum(client.sent for client in self.clients),
            'report': report.to_dict(),
            'channel': self.channel.get_stats(),
            'server': {
                'received': self.server.received,
                'size_mismatches': self.server.size_mismatches,
                'frames_decoded': self.server.frames_decoded,
            },
            'outcomes': dict(self.outcomes),
        }


def save_report(result: Dict[str, Any], file_path: Union[str, Path]) -> str:
    """Write a simulation result as JSON.

    Returns:
        Path of the written file
    """
    file_path = str(file_path)
    directory = os.path.dirname(file_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(file_path, 'w') as f:
        json.dump(result, f, indent=2)
    logger.info(f"Report saved to {file_path}")
    return file_path


def run_simulations(configs: List[ConfigDict]) -> List[Dict[str, Any]]:
    """Run one simulation per configuration, for codec or condition comparisons."""
    return [CallSimulation(config).run() for config in configs]
