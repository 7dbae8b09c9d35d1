"""Register the agent to start at boot or login on each platform."""

from __future__ import annotations

import os
import platform
import shutil
from pathlib import Path


SERVICE_NAME = "sysreport"


def _windows_run_key_path() -> str:
    return r"Software\\Microsoft\\Windows\\CurrentVersion\\Run"


def _command_line(command: str, config_path: Path) -> list[str]:
    return [command, "--config", str(config_path), "run"]


def _set_windows_startup(enabled: bool, command: str, config_path: Path) -> Path | None:
    import winreg  # type: ignore

    with winreg.OpenKey(winreg.HKEY_CURRENT_USER, _windows_run_key_path(), 0, winreg.KEY_SET_VALUE) as key:
        if enabled:
            line = " ".join(f'"{part}"' for part in _command_line(command, config_path))
            winreg.SetValueEx(key, SERVICE_NAME, 0, winreg.REG_SZ, line)
        else:
            try:
                winreg.DeleteValue(key, SERVICE_NAME)
            except FileNotFoundError:
                pass
    return None


def _set_macos_startup(enabled: bool, command: str, config_path: Path) -> Path | None:
    launch_agents = Path.home() / "Library" / "LaunchAgents"
    plist = launch_agents / f"com.sysreport.{SERVICE_NAME}.plist"

    if not enabled:
        if plist.exists():
            plist.unlink()
        return None

    launch_agents.mkdir(parents=True, exist_ok=True)
    args = "\n".join(f"    <string>{part}</string>" for part in _command_line(command, config_path))
    plist.write_text(
        f"""<?xml version=\"1.0\" encoding=\"UTF-8\"?>
<!DOCTYPE plist PUBLIC \"-//Apple Computer//DTD PLIST 1.0//EN\" \"http://www.apple.com/DTDs/PropertyList-1.0.dtd\">
<plist version=\"1.0\">
<dict>
  <key>Label</key>
  <string>com.sysreport.{SERVICE_NAME}</string>
  <key>ProgramArguments</key>
  <array>
{args}
  </array>
  <key>WorkingDirectory</key>
  <string>{config_path.parent}</string>
  <key>RunAtLoad</key>
  <true/>
  <key>KeepAlive</key>
  <true/>
</dict>
</plist>
""",
        encoding="utf-8",
    )
    return plist


def _set_linux_startup(enabled: bool, command: str, config_path: Path) -> Path | None:
    unit_dir = Path.home() / ".config" / "systemd" / "user"
    unit_file = unit_dir / f"{SERVICE_NAME}.service"

    if not enabled:
        if unit_file.exists():
            unit_file.unlink()
        return None

    unit_dir.mkdir(parents=True, exist_ok=True)
    unit_file.write_text(
        f"""[Unit]
Description=SysReport monitoring agent
After=network-online.target
Wants=network-online.target

[Service]
Type=simple
WorkingDirectory={config_path.parent}
ExecStart={" ".join(_command_line(command, config_path))}
Restart=always
RestartSec=10

[Install]
WantedBy=default.target
""",
        encoding="utf-8",
    )
    return unit_file


def set_run_at_login(enabled: bool, config_path: Path, command: str | None = None) -> Path | None:
    """Install or remove the startup registration; returns the file written, if any."""
    cmd = command or os.environ.get("SYSREPORT_CMD") or shutil.which("sysreport") or "sysreport"
    config_path = config_path.expanduser().resolve()
    system = platform.system()

    if system == "Windows":
        return _set_windows_startup(enabled, cmd, config_path)
    if system == "Darwin":
        return _set_macos_startup(enabled, cmd, config_path)
    return _set_linux_startup(enabled, cmd, config_path)
