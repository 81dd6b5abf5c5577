"""Terminal surface for VoiceDrop."""
