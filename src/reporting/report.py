"""Deployment reporting and logging."""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class PhaseResult:
    """Result of a deployment phase."""
    name: str
    description: str
    status: str  # 'passed', 'failed', 'warning', 'skipped'
    message: str = ''
    duration: float = 0.0
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None


@dataclass
class DeployReport:
    """Collects phase results and writes run reports."""
    domain: str
    report_dir: Optional[Path] = None
    scenario: str = ''
    phases: list[PhaseResult] = field(default_factory=list)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    success: bool = False

    _phase_start: Optional[datetime] = field(default=None, repr=False)
    _descriptions: dict = field(default_factory=dict, repr=False)

    def start(self):
        """Mark run start."""
        self.started_at = datetime.now()
        if self.report_dir:
            try:
                self.report_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.warning(f"Reports disabled, cannot create {self.report_dir}: {e}")
                self.report_dir = None

    def start_phase(self, name: str, description: str):
        """Mark phase start."""
        self._descriptions[name] = description
        self._phase_start = datetime.now()

    def pass_phase(self, name: str, message: str = '', duration: float = 0.0):
        """Record passed phase."""
        self._record_phase(name, 'passed', message, duration)

    def fail_phase(self, name: str, message: str = '', duration: float = 0.0):
        """Record failed phase."""
        self._record_phase(name, 'failed', message, duration)

    def warn_phase(self, name: str, message: str = '', duration: float = 0.0):
        """Record a phase that failed without stopping the run."""
        self._record_phase(name, 'warning', message, duration)

    def skip_phase(self, name: str, description: str):
        """Record skipped phase."""
        self.phases.append(PhaseResult(
            name=name,
            description=description,
            status='skipped'
        ))

    def _record_phase(self, name: str, status: str, message: str, duration: float):
        """Record phase result."""
        now = datetime.now()
        if duration == 0.0 and self._phase_start:
            duration = (now - self._phase_start).total_seconds()

        self.phases.append(PhaseResult(
            name=name,
            description=self._descriptions.get(name, name),
            status=status,
            message=message,
            duration=duration,
            started_at=self._phase_start,
            finished_at=now
        ))
        self._phase_start = None

    @property
    def warnings(self) -> list[PhaseResult]:
        return [p for p in self.phases if p.status == 'warning']

    def finish(self, success: bool):
        """Finalize report and write files when a report directory is set."""
        self.finished_at = datetime.now()
        self.success = success
        if self.report_dir:
            self._write_json(self.report_dir)
            self._write_markdown(self.report_dir)

    def _duration(self) -> float:
        if self.finished_at and self.started_at:
            return (self.finished_at - self.started_at).total_seconds()
        return 0

    def _write_json(self, report_dir: Path):
        """Write JSON report."""
        data = {
            'scenario': self.scenario,
            'domain': self.domain,
            'success': self.success,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'finished_at': self.finished_at.isoformat() if self.finished_at else None,
            'duration': self._duration(),
            'phases': [
                {
                    'name': p.name,
                    'description': p.description,
                    'status': p.status,
                    'message': p.message,
                    'duration': p.duration
                }
                for p in self.phases
            ]
        }
        filename = self._report_filename(report_dir, 'json')
        with open(filename, 'w', encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def _write_markdown(self, report_dir: Path):
        """Write markdown report."""
        status = 'PASSED' if self.success else 'FAILED'

        lines = [
            f"# {self.scenario}",
            "",
            f"**Domain**: {self.domain}",
            f"**Status**: {status}",
            f"**Date**: {self.started_at.strftime('%Y-%m-%d %H:%M:%S') if self.started_at else 'N/A'}",
            f"**Duration**: {self._duration():.1f}s",
            "",
            "## Phases",
            "",
            "| Phase | Status | Duration | Message |",
            "|-------|--------|----------|---------|",
        ]

        for p in self.phases:
            status_emoji = {'passed': '✅', 'failed': '❌', 'warning': '⚠️', 'skipped': '⏭️'}.get(p.status, '❓')
            message = p.message.replace('\n', ' ').replace('|', '\\|')
            lines.append(f"| {p.name} | {status_emoji} {p.status} | {p.duration:.1f}s | {message} |")

        lines.extend(["", "---", f"Generated: {datetime.now().isoformat()}"])

        filename = self._report_filename(report_dir, 'md')
        with open(filename, 'w', encoding="utf-8") as f:
            f.write('\n'.join(lines))

    def _report_filename(self, report_dir: Path, ext: str) -> Path:
        """Generate report filename from start time, domain and outcome."""
        timestamp = self.started_at.strftime('%Y%m%d-%H%M%S') if self.started_at else 'unknown'
        status = 'passed' if self.success else 'failed'
        return report_dir / f"{timestamp}.{self.domain}.{status}.{ext}"

    def to_dict(self, context: Optional[dict] = None) -> dict:
        """Return report as dictionary for JSON output.

        Args:
            context: Optional context dict to include in output.
                     Only JSON-serializable values are included.
        """
        result = {
            'scenario': self.scenario,
            'domain': self.domain,
            'success': self.success,
            'duration_seconds': round(self._duration(), 1),
            'phases': [
                {
                    'name': p.name,
                    'status': p.status,
                    'duration': round(p.duration, 1),
                }
                for p in self.phases
            ]
        }

        if not self.success:
            for p in self.phases:
                if p.status == 'failed' and p.message:
                    result['error'] = p.message
                    break

        warnings = [f"{p.name}: {p.message}" for p in self.warnings]
        if warnings:
            result['warnings'] = warnings

        if context:
            serializable_context = {}
            for key, value in context.items():
                if key.startswith('_'):
                    continue
                try:
                    json.dumps(value)
                    serializable_context[key] = value
                except (TypeError, ValueError):
                    pass
            if serializable_context:
                result['context'] = serializable_context

        return result
