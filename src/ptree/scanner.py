"""Process table scanner for ptree."""

import logging
from dataclasses import dataclass, field

import psutil

from ptree.exceptions import ScanError
from ptree.models import ProcessRecord

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ScanWarning:
    """A process that was left out of the snapshot, and why."""

    pid: int
    reason: str

    def __str__(self) -> str:
        return f"couldn't read pid {self.pid}: {self.reason}"


@dataclass(slots=True)
class ScanResult:
    """Snapshot of the process table."""

    records: dict[int, ProcessRecord] = field(default_factory=dict)
    warnings: list[ScanWarning] = field(default_factory=list)


def format_command_line(cmdline: list[str] | None, name: str | None, status: str | None) -> str:
    """
    Build the display text for a process.

    Arguments containing spaces are quoted. Processes without a command line
    (kernel threads, or when access is denied) show their name in brackets,
    and zombies are flagged.
    """
    args = [f'"{arg}"' if " " in arg else arg for arg in (cmdline or []) if arg]
    command_line = " ".join(args)

    if not command_line:
        command_line = f"[{name or '?'}]"

    if status == psutil.STATUS_ZOMBIE:
        command_line = f"[{command_line}] zombie!"

    return command_line


class ProcessScanner:
    """
    Reads a one-shot snapshot of the process table using psutil.

    Processes that vanish or can't be read mid-scan are reported as
    warnings and left out. Failure to enumerate the table at all raises
    ScanError.
    """

    def __init__(self) -> None:
        """Initialize the ProcessScanner."""
        self._attrs = ["pid", "ppid", "name", "status", "cmdline"]
        # uids() only exists on POSIX platforms
        if psutil.POSIX:
            self._attrs.append("uids")

    @property
    def attrs(self) -> list[str]:
        """Get the psutil attributes fetched for each process."""
        return list(self._attrs)

    def scan(self) -> ScanResult:
        """Collect a record for every readable process."""
        result = ScanResult()

        try:
            pids = psutil.pids()
        except (OSError, psutil.Error) as exc:
            raise ScanError("couldn't enumerate processes", exc) from exc

        for pid in pids:
            try:
                record = self._read_process(pid)
            except (psutil.NoSuchProcess, psutil.AccessDenied) as exc:
                # ZombieProcess is a NoSuchProcess
                self._warn(result, pid, exc.msg or type(exc).__name__)
                continue
            except (TypeError, ValueError) as exc:
                self._warn(result, pid, str(exc))
                continue

            result.records[record.pid] = record

        logger.debug(
            "scanned %d processes, %d skipped", len(result.records), len(result.warnings)
        )
        return result

    def _read_process(self, pid: int) -> ProcessRecord:
        """
        Read one process into a ProcessRecord.

        Raises:
            psutil.NoSuchProcess: If the process exited before or while reading.
            ValueError: If a required field can't be read.
        """
        proc = psutil.Process(pid)
        with proc.oneshot():
            # as_dict() turns AccessDenied into ad_value but lets NoSuchProcess through
            info = proc.as_dict(self._attrs, ad_value=None)

        ppid = info.get("ppid")
        if ppid is None:
            raise ValueError("missing parent pid")

        if psutil.POSIX:
            uids = info.get("uids")
            if uids is None:
                raise ValueError("missing uid")
            owner_id = int(uids.real)
        else:
            owner_id = 0

        return ProcessRecord(
            pid=int(info.get("pid", pid)),
            parent_id=int(ppid),
            owner_id=owner_id,
            command_line=format_command_line(
                info.get("cmdline"), info.get("name"), info.get("status")
            ),
        )

    @staticmethod
    def _warn(result: ScanResult, pid: int, reason: str) -> None:
        warning = ScanWarning(pid=pid, reason=reason)
        result.warnings.append(warning)
        logger.warning("%s", warning)


def list_processes() -> ScanResult:
    """Take a snapshot of the running processes."""
    return ProcessScanner().scan()
