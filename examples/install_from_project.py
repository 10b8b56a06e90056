"""Install the Mago version a Composer project asks for."""

from pathlib import Path

from mago_setup.domain import SetupOptions
from mago_setup.installer import MagoInstaller

installer = MagoInstaller(root_dir=Path.home() / ".mago-setup")

installed = installer.install(SetupOptions(working_directory="."))

print(f"Installed mago {installed.version} -> {installed.binary}")
