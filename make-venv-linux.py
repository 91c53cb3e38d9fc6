"""Create a Linux virtual environment with ExamDesk installed in editable mode."""

from __future__ import annotations

import argparse
from pathlib import Path
import subprocess
import sys


def run_command(command: list[str]) -> None:
	subprocess.run(command, check=True)


def launch_shell_with_venv(venv_path: Path) -> None:
	activate_script = venv_path / "bin" / "activate"
	if not activate_script.exists():
		raise FileNotFoundError(f"Activation script not found at {activate_script}")

	print("Dropping you into a shell with the ExamDesk environment activated.")
	print("Run 'examdesk --help' for client options, or 'pytest' for the test suite.")
	bash_command = f"source '{activate_script}' && exec $SHELL"
	subprocess.run(["/bin/bash", "-c", bash_command], check=True)


def main() -> None:
	parser = argparse.ArgumentParser(description=__doc__)
	parser.add_argument("--no-tests", action="store_true", help="Skip the pytest/httpx test extra.")
	parser.add_argument("--no-shell", action="store_true", help="Do not open a shell afterwards.")
	args = parser.parse_args()

	project_root = Path(__file__).resolve().parent
	venv_path = project_root / ".venv"
	python_exe = sys.executable

	print(f"Using Python interpreter: {python_exe}")
	run_command([python_exe, "-m", "venv", str(venv_path)])

	venv_python = venv_path / "bin" / "python"
	run_command([str(venv_python), "-m", "pip", "install", "--upgrade", "pip"])

	target = "." if args.no_tests else ".[test]"
	run_command([str(venv_python), "-m", "pip", "install", "-e", target])

	if not args.no_shell:
		launch_shell_with_venv(venv_path)


if __name__ == "__main__":
	main()
