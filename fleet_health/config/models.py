"""Pydantic configuration models for the fleet health-checker."""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Dict, List, Optional

from ..utils.status import CheckKind


class FrozenModel(BaseModel):
    """Configuration is fixed for the lifetime of a run."""

    model_config = ConfigDict(frozen=True, extra="forbid")


def _validate_http_url(v: str) -> str:
    if not v.startswith(('http://', 'https://')):
        raise ValueError('URL must start with http:// or https://')
    return v


class DirectoryConfig(FrozenModel):
    """Instance directory lookup configuration."""
    url: str = "https://admin.longsight.com/longsight/json/jmx-instances"
    token: str
    ips: Optional[str] = None  # Comma separated address allow-list
    client_id: Optional[str] = None
    user_agent: str = "JMX-Cron v1.0"
    token_header: str = "X-Auth-Token"
    timeout_s: float = Field(default=10.0, gt=0, le=120)

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL format."""
        return _validate_http_url(v)

    @field_validator('token')
    @classmethod
    def validate_token(cls, v: str) -> str:
        """A security token is mandatory for every run."""
        if not v or not v.strip():
            raise ValueError('Please provide a valid security token')
        return v.strip()


class MetricsProxyConfig(FrozenModel):
    """Metrics proxy (Jolokia) endpoint configuration."""
    url: str = "http://10.4.100.101:32222/jolokia"
    timeout_s: float = Field(default=3.0, ge=0.5, le=30)

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL format."""
        return _validate_http_url(v)


class ReportConfig(FrozenModel):
    """Report sink configuration."""
    url: str = "https://admin.longsight.com/longsight/healthinfo"
    timeout_s: float = Field(default=10.0, gt=0, le=120)

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL format."""
        return _validate_http_url(v)


def canonical_mbean(name: str) -> str:
    """
    Normalize an MBean object name for comparison.

    Key properties are unordered in JMX, so "a:x=1,y=2" and "a:y=2,x=1"
    name the same bean.

    Args:
        name: MBean object name

    Returns:
        str: Name with whitespace stripped and key properties sorted
    """
    domain, _, props = name.strip().partition(':')
    pairs = sorted(p.strip() for p in props.split(',') if p.strip())
    return f"{domain.strip()}:{','.join(pairs)}"


class MetricDefinition(FrozenModel):
    """One row of the metric catalog: which attribute answers which kind."""
    kind: CheckKind
    mbean: str
    attribute: str
    path: Optional[str] = None

    @field_validator('kind')
    @classmethod
    def validate_kind(cls, v: CheckKind) -> CheckKind:
        """Reachability is measured by the health probe, not the proxy."""
        if v is CheckKind.REACHABILITY:
            raise ValueError('reachability is not a metric kind')
        return v

    @field_validator('mbean')
    @classmethod
    def validate_mbean(cls, v: str) -> str:
        """MBean names are domain:key=value[,key=value...]."""
        domain, sep, props = v.partition(':')
        if not domain or not sep or '=' not in props:
            raise ValueError(f'Invalid MBean name: {v}')
        return v


class ProbeConfig(FrozenModel):
    """Per-probe behaviour."""
    health_timeout_s: float = Field(default=7.0, ge=1, le=60)
    # Substring of the project name -> path suffix, first match wins
    path_rules: Dict[str, str] = Field(default_factory=lambda: {"sakai": "portal/"})
    catalog: Optional[List[MetricDefinition]] = None

    @field_validator('catalog')
    @classmethod
    def validate_catalog(cls, v: Optional[List[MetricDefinition]]) -> Optional[List[MetricDefinition]]:
        """Each metric kind and each MBean attribute may appear at most once."""
        if v is None:
            return v
        if not v:
            raise ValueError('catalog override must not be empty')
        kinds = [definition.kind for definition in v]
        if len(kinds) != len(set(kinds)):
            raise ValueError('catalog lists a metric kind more than once')
        reads = [(canonical_mbean(d.mbean), d.attribute, d.path) for d in v]
        if len(reads) != len(set(reads)):
            raise ValueError('catalog reads the same MBean attribute for two kinds')
        return v


class SweepConfig(FrozenModel):
    """Sweep-wide limits."""
    deadline_s: float = Field(default=30.0, gt=0, le=600)


class LoggingConfig(FrozenModel):
    """Logging configuration."""
    level: str = "INFO"
    # Constant keys added to every log line, e.g. host or environment
    fields: Dict[str, str] = Field(default_factory=dict)

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Restrict to standard level names."""
        level = v.upper()
        if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f'Unknown log level: {v}')
        return level


class FleetCheckConfig(FrozenModel):
    """Root configuration model for one health-check run."""
    directory: DirectoryConfig
    metrics_proxy: MetricsProxyConfig = Field(default_factory=MetricsProxyConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    probes: ProbeConfig = Field(default_factory=ProbeConfig)
    sweep: SweepConfig = Field(default_factory=SweepConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
