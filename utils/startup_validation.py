"""
Startup Validation Module

Checks the configuration once at boot so a missing auth provider key or a
weak session secret shows up in the logs (and at /health/startup) instead of
as a failed login later on.
"""

import os
import logging
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Result of a validation check."""
    name: str
    passed: bool
    message: str
    severity: str = "error"  # error, warning, info
    remediation: Optional[str] = None


@dataclass
class StartupReport:
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    environment: str = "unknown"
    validations: List[ValidationResult] = field(default_factory=list)
    ready_for_production: bool = False

    def add_validation(self, result: ValidationResult):
        self.validations.append(result)

    def has_critical_failures(self) -> bool:
        return any(v.severity == "error" and not v.passed for v in self.validations)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "environment": self.environment,
            "ready_for_production": self.ready_for_production,
            "validations": [
                {
                    "name": v.name,
                    "passed": v.passed,
                    "message": v.message,
                    "severity": v.severity,
                    "remediation": v.remediation
                }
                for v in self.validations
            ],
            "summary": {
                "total_validations": len(self.validations),
                "passed": sum(1 for v in self.validations if v.passed),
                "failed": sum(1 for v in self.validations if not v.passed),
            }
        }


class StartupValidator:
    """
    Validates:
    1. Required settings (session secret, auth provider)
    2. Recommended settings (payments, backend URL)
    3. Session secret strength
    """

    REQUIRED_SETTINGS = [
        ("SECRET_KEY", "SESSION_SECRET", "Session signing key - CRITICAL for security"),
        ("SUPABASE_URL", "SUPABASE_URL", "Auth provider URL - login is impossible without it"),
        ("SUPABASE_ANON_KEY", "SUPABASE_ANON_KEY", "Auth provider public key"),
    ]

    # SECRET_KEY always has a development fallback, so only the variable itself counts
    ENV_ONLY_SETTINGS = {"SESSION_SECRET"}

    RECOMMENDED_SETTINGS = [
        ("STRIPE_PUBLISHABLE_KEY", "STRIPE_PUBLISHABLE_KEY", "Needed to render the checkout form"),
        ("STRIPE_SECRET_KEY", "STRIPE_SECRET_KEY", "Needed to verify payment results server-side"),
        ("API_BASE_URL", "API_BASE_URL", "Backend service URL - defaults to http://localhost:3001"),
    ]

    def __init__(self, config):
        self.config = config
        self.report = StartupReport()
        self.report.environment = os.getenv("FLASK_ENV", "production" if not config.get("DEBUG") else "development")
        if config.get("TESTING"):
            self.report.environment = "testing"

    def is_production(self) -> bool:
        return self.report.environment == "production"

    def _check_settings(self, settings, severity):
        for key, env_name, description in settings:
            if env_name in self.ENV_ONLY_SETTINGS:
                value = os.getenv(env_name)
            else:
                value = self.config.get(key)
            if value:
                self.report.add_validation(ValidationResult(
                    name=f"env:{env_name}",
                    passed=True,
                    message=f"{env_name} is configured",
                    severity=severity
                ))
            elif severity == "error":
                self.report.add_validation(ValidationResult(
                    name=f"env:{env_name}",
                    passed=False,
                    message=f"Missing required: {env_name}",
                    severity=severity,
                    remediation=f"Set {env_name} environment variable. {description}"
                ))
            else:
                self.report.add_validation(ValidationResult(
                    name=f"env:{env_name}",
                    passed=True,  # Pass but warn
                    message=f"Optional: {env_name} not set - {description}",
                    severity=severity,
                    remediation=f"Consider setting {env_name}. {description}"
                ))

    def validate_required_settings(self) -> None:
        self._check_settings(self.REQUIRED_SETTINGS, "error")

    def validate_recommended_settings(self) -> None:
        self._check_settings(self.RECOMMENDED_SETTINGS, "warning")

    def validate_secret_key_strength(self) -> None:
        secret = self.config.get("SECRET_KEY") or ""
        if len(secret) < 32:
            self.report.add_validation(ValidationResult(
                name="security:session_secret",
                passed=not self.is_production(),
                message=f"SESSION_SECRET too short ({len(secret)} chars, need 32+)",
                severity="error" if self.is_production() else "warning",
                remediation="Use at least 32 characters for SESSION_SECRET"
            ))
        else:
            self.report.add_validation(ValidationResult(
                name="security:session_secret",
                passed=True,
                message="SESSION_SECRET meets length requirements",
                severity="error"
            ))

    def run_all_validations(self) -> StartupReport:
        self.validate_required_settings()
        self.validate_recommended_settings()
        self.validate_secret_key_strength()

        self.report.ready_for_production = not self.report.has_critical_failures()

        summary = self.report.to_dict()["summary"]
        logger.info(f"Startup validation ({self.report.environment}): "
                    f"{summary['passed']}/{summary['total_validations']} passed")
        for v in self.report.validations:
            if not v.passed and v.severity == "error":
                logger.error(f"  - {v.name}: {v.message}")
                if v.remediation:
                    logger.error(f"    Fix: {v.remediation}")
            elif v.severity == "warning" and v.remediation:
                logger.warning(f"  - {v.name}: {v.message}")

        return self.report


def run_startup_validation(config) -> StartupReport:
    return StartupValidator(config).run_all_validations()
