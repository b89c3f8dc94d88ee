import math
import pathlib
import sys
import tempfile
import unittest

# Ensure src/ is on path for direct test execution
ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from probestation.config import (  # noqa: E402
    ProbeStationConfig,
    config_from_mapping,
    load_config,
)
from probestation.errors import ConfigError  # noqa: E402


class RuntimeConfigTest(unittest.TestCase):
    def test_defaults_match_receiver_firmware(self):
        cfg = ProbeStationConfig()
        self.assertEqual(cfg.baud_rate, 115200)
        self.assertTrue(cfg.hardware_flow_control)
        self.assertEqual(cfg.read_timeout_s, 1.0)
        self.assertEqual(cfg.encoding, "utf-8")

    def test_config_from_mapping_defaults_when_empty(self):
        self.assertEqual(config_from_mapping(None), ProbeStationConfig())
        self.assertEqual(config_from_mapping({}), ProbeStationConfig())

    def test_serial_block_is_flattened(self):
        payload = {
            "serial": {"baud_rate": 9600, "hardware_flow_control": False},
            "status_duration_s": 2.5,
            "unknown_key": "ignored",
        }
        cfg = config_from_mapping(payload)
        self.assertEqual(cfg.baud_rate, 9600)
        self.assertFalse(cfg.hardware_flow_control)
        self.assertEqual(cfg.status_duration_s, 2.5)

    def test_sanitized_clamps_timeouts(self):
        cfg = ProbeStationConfig(read_timeout_s=0.0, status_duration_s=math.nan).sanitized()
        self.assertEqual(cfg.read_timeout_s, 1.0)
        self.assertEqual(cfg.status_duration_s, 6.0)

    def test_unknown_encoding_is_rejected(self):
        with self.assertRaises(ConfigError):
            config_from_mapping({"encoding": "not-a-codec"})

    def test_non_numeric_value_is_rejected(self):
        with self.assertRaises(ConfigError):
            config_from_mapping({"baud_rate": "fast"})

    def test_load_config_missing_file_falls_back(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            cfg = load_config(pathlib.Path(tmpdir) / "missing.yml")
        self.assertEqual(cfg, ProbeStationConfig())
        self.assertEqual(load_config(None), ProbeStationConfig())

    def test_load_config_reads_yaml(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = pathlib.Path(tmpdir) / "station.yml"
            path.write_text(
                "serial:\n"
                "  baud_rate: 57600\n"
                "  read_timeout_s: 0.5\n"
                "recordings_dir: flights\n",
                encoding="utf-8",
            )
            cfg = load_config(path)
        self.assertEqual(cfg.baud_rate, 57600)
        self.assertEqual(cfg.read_timeout_s, 0.5)
        self.assertEqual(cfg.recordings_dir, "flights")

    def test_load_config_rejects_malformed_yaml(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = pathlib.Path(tmpdir) / "broken.yml"
            path.write_text("serial: [unclosed\n", encoding="utf-8")
            with self.assertRaises(ConfigError) as ctx:
                load_config(path)
        self.assertIn("broken.yml", str(ctx.exception))

    def test_load_config_rejects_non_mapping(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = pathlib.Path(tmpdir) / "list.yml"
            path.write_text("- 1\n- 2\n", encoding="utf-8")
            with self.assertRaises(ConfigError):
                load_config(path)


if __name__ == "__main__":
    unittest.main()
