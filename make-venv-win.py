"""Create a Windows virtual environment with ExamDesk installed in editable mode."""

from __future__ import annotations

import argparse
from pathlib import Path
import subprocess
import sys


def run_command(command: list[str]) -> None:
	"""Run a subprocess command and bubble up errors."""
	subprocess.run(command, check=True)


def launch_shell_with_venv(venv_path: Path) -> None:
	"""Open a new Command Prompt with the virtual environment activated."""
	activate_bat = venv_path / "Scripts" / "activate.bat"
	if not activate_bat.exists():
		raise FileNotFoundError(f"Activation script not found at {activate_bat}")

	print("Starting Command Prompt with the ExamDesk environment activated…")
	print("Run 'examdesk --help' for client options. Type 'exit' when you are done.")
	subprocess.run(["cmd.exe", "/k", str(activate_bat)], check=True)


def main() -> None:
	parser = argparse.ArgumentParser(description=__doc__)
	parser.add_argument("--no-tests", action="store_true", help="Skip the pytest/httpx test extra.")
	parser.add_argument("--no-shell", action="store_true", help="Do not open a Command Prompt afterwards.")
	args = parser.parse_args()

	project_root = Path(__file__).resolve().parent
	venv_path = project_root / ".venv"
	python_exe = sys.executable

	print(f"Using Python interpreter: {python_exe}")
	run_command([python_exe, "-m", "venv", str(venv_path)])

	venv_python = venv_path / "Scripts" / "python.exe"
	run_command([str(venv_python), "-m", "pip", "install", "--upgrade", "pip"])

	target = "." if args.no_tests else ".[test]"
	run_command([str(venv_python), "-m", "pip", "install", "-e", target])

	if not args.no_shell:
		launch_shell_with_venv(venv_path)


if __name__ == "__main__":
	main()
