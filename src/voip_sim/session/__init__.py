"""
Call Session Components

Packet model, session statistics tracker, client and server endpoints and
the channel model connecting them.
"""

from voip_sim.session.packet import VoicePacket, build_packet, packet_size, HEADER_SIZE
from voip_sim.session.tracker import (
    ArrivalOutcome, SessionReport, SessionStatistics, UserMetrics, UserStat
)
from voip_sim.session.client import VoIPClient
from voip_sim.session.server import VoIPServer
from voip_sim.session.channel import ChannelSimulator, NetworkConditions

__all__ = [
    'ArrivalOutcome',
    'ChannelSimulator',
    'HEADER_SIZE',
    'NetworkConditions',
    'SessionReport',
    'SessionStatistics',
    'UserMetrics',
    'UserStat',
    'VoIPClient',
    'VoIPServer',
    'VoicePacket',
    'build_packet',
    'packet_size',
]
