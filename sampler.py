"""Live in-band peak readout for tuning the whistle threshold."""
from pathlib import Path
from typing import Optional

import config_loader
from logger import get_logger
from whistle_core import SpectralFrameProducer, SpectrumFrame, TickScheduler, bin_to_frequency, peak_in_band

log = get_logger(__name__)


def live_sample(config_path: Optional[Path] = None) -> None:
    config = config_loader.load_config(config_path)
    detection = config_loader.detection_config_from(config)
    scheduler = TickScheduler(config["scheduler"]["tick_interval_sec"])
    producer = SpectralFrameProducer(config, scheduler)

    def show(frame: SpectrumFrame) -> None:
        peak, peak_bin = peak_in_band(frame, detection.min_hz, detection.max_hz)
        freq = bin_to_frequency(peak_bin, frame.sample_rate, frame.fft_size) if peak_bin is not None else 0.0
        marker = "WHISTLE?" if peak > detection.threshold else ""
        print(f"in-band peak: {peak:3d}/255 at {freq:7.0f} Hz "
              f"(threshold {detection.threshold:.0f}) {marker}", flush=True)

    producer.on_frame(show)
    print("\nLive sampling (Ctrl+C to stop)...")
    producer.start()
    try:
        scheduler.run()
    except KeyboardInterrupt:
        print("\nStopped.\n")
    finally:
        producer.stop()
