"""
VoIP Simulation Package

G.711 and G.726 speech codecs with a per-call quality metrics tracker.
"""

__version__ = '0.1.0'
__author__ = 'VoIP Simulation Team'

# Import main components for easier access
from voip_sim.codecs import CodecType, VoiceCodec, G711Codec, G726Codec, create_codec
from voip_sim.errors import VoIPError, ConfigurationError, AddressingError, SizeMismatchError
from voip_sim.session import VoicePacket, build_packet, SessionStatistics, ArrivalOutcome

# Define package-level constants
DEFAULT_SAMPLE_RATE = 8000
DEFAULT_CHANNELS = 1
DEFAULT_FRAME_SIZE = 160  # 20ms at 8kHz
