"""PeerTube remote video service"""
from vision.services.peertube.auth import PeerTubeTokenProvider
from vision.services.peertube.client import PeerTubeClient

__all__ = ["PeerTubeTokenProvider", "PeerTubeClient"]
