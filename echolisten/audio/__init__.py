"""Audio decoding for uploaded recordings (duration probe, float32 PCM for ASR)."""
from echolisten.audio.decode import SAMPLE_RATE, decode_to_float32, pcm_bytes_to_float32, probe_duration

__all__ = ["SAMPLE_RATE", "decode_to_float32", "pcm_bytes_to_float32", "probe_duration"]
