from __future__ import annotations

from pathlib import Path

from services.errors import SensorUnavailable

DEFAULT_W1_ROOT = Path("/sys/bus/w1/devices")
SLAVE_FILENAME = "w1_slave"


class W1SysfsSensor:
    """DS18B20 driver backed by the Linux 1-Wire sysfs interface."""

    def __init__(self, root_path: Path = DEFAULT_W1_ROOT) -> None:
        self.root_path = Path(root_path)

    def device_path(self, device_id: str) -> Path:
        return self.root_path / device_id / SLAVE_FILENAME

    def read(self, device_id: str) -> tuple[str, ...]:
        path = self.device_path(device_id)
        try:
            text = path.read_text(encoding="ascii", errors="replace")
        except OSError as exc:
            raise SensorUnavailable(f"Cannot read {path}: {exc.strerror or exc}") from exc

        lines = tuple(line for line in text.splitlines() if line.strip())
        if not lines:
            raise SensorUnavailable(f"Sensor file {path} is empty.")
        return lines[:2]

    def list_devices(self) -> list[str]:
        if not self.root_path.is_dir():
            return []
        return sorted(
            path.name
            for path in self.root_path.iterdir()
            if (path / SLAVE_FILENAME).exists()
        )
