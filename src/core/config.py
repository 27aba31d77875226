"""
Configuration for the dispatch insight engine.

Provides environment-aware settings with conservative defaults. All detection
thresholds are configurable to avoid hard-coded "magic numbers".
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ZScoreThresholds(BaseModel):
	"""
	Thresholds for the Z-score detector.

	Notes:
	- |z| above warning is unusual (roughly the outer 5% of a normal sample).
	- |z| above critical is very unusual (roughly the outer 0.3%).
	"""

	warning: float = Field(2.0, ge=0.0, description="|z| above this is a warning")
	critical: float = Field(3.0, ge=0.0, description="|z| above this is critical")
	min_samples: int = Field(3, ge=2, description="Minimum reference sample size")


class IQRThresholds(BaseModel):
	"""
	Tukey fence factors for the IQR detector.
	"""

	fence_factor: float = Field(1.5, gt=0.0, description="Inner fence multiplier")
	extreme_fence_factor: float = Field(3.0, gt=0.0, description="Extreme fence multiplier")
	min_samples: int = Field(4, ge=4, description="Minimum reference sample size")


class MovingAverageThresholds(BaseModel):
	"""
	Relative deviation from a moving average (0.15 means 15%).
	"""

	warning: float = Field(0.15, ge=0.0)
	critical: float = Field(0.25, ge=0.0)


class ComplianceGapThresholds(BaseModel):
	"""
	Compliance-rate gaps in percentage points below the reference rate.
	"""

	warning_points: float = Field(10.0, ge=0.0)
	critical_points: float = Field(20.0, ge=0.0)


class SequenceConfig(BaseModel):
	"""
	Run-length detection of consecutive adverse events.
	"""

	min_length: int = Field(3, ge=1)
	critical_length: int = Field(5, ge=1)


class TrendConfig(BaseModel):
	"""
	Least-squares trend classification.

	Notes:
	- slope_threshold is in units of the series per step.
	- R^2 above significant_r_squared marks a significant fit.
	"""

	min_points: int = Field(3, ge=3)
	slope_threshold: float = Field(0.5, ge=0.0)
	significant_r_squared: float = Field(0.6, ge=0.0, le=1.0)
	strong_r_squared: float = Field(0.8, ge=0.0, le=1.0)


class DegradationConfig(BaseModel):
	"""
	Recent-window vs. baseline-window comparison.

	Notes:
	- Time metrics degrade when the current mean exceeds the baseline mean by
	  more than time_warning (relative).
	- Compliance degrades when it drops by more than rate_warning_points.
	"""

	current_window_hours: float = Field(24.0, gt=0.0)
	baseline_window_hours: float = Field(168.0, gt=0.0)
	time_warning: float = Field(0.15, ge=0.0)
	time_critical: float = Field(0.25, ge=0.0)
	rate_warning_points: float = Field(10.0, ge=0.0)
	rate_critical_points: float = Field(20.0, ge=0.0)


class SectorConfig(BaseModel):
	"""
	Sector-level analysis settings.
	"""

	min_count: int = Field(5, ge=1, description="Observations needed before a sector is judged")
	travel_time_ratio: float = Field(1.2, gt=0.0, description="Flag when sector mean exceeds global mean by this factor")
	rate_gap_points: float = Field(10.0, ge=0.0)
	density_warning_ratio: float = Field(1.5, gt=0.0)
	density_critical_ratio: float = Field(2.0, gt=0.0)
	top_problem_sectors: int = Field(3, ge=0)


class TimePatternConfig(BaseModel):
	"""
	Hour-of-day pattern settings.
	"""

	min_count: int = Field(5, ge=1)
	rate_threshold: float = Field(75.0, ge=0.0, le=100.0)
	timezone: Optional[str] = Field(
		None, description="IANA zone for hour/weekday grouping; None uses the system local zone"
	)


class ComplianceConfig(BaseModel):
	"""
	Compliance targets used when processing raw dispatch records.
	"""

	response_time_threshold: float = Field(90.0, gt=0.0, description="Seconds from alarm to departure")
	travel_time_threshold: float = Field(300.0, gt=0.0, description="Seconds from departure to arrival")
	non_relevant_suffix: str = Field("-NF", description="Event types with this suffix do not count")


class DetectionConfig(BaseModel):
	"""
	All detector thresholds.
	"""

	zscore: ZScoreThresholds = ZScoreThresholds()
	iqr: IQRThresholds = IQRThresholds()
	moving_average: MovingAverageThresholds = MovingAverageThresholds()
	compliance_gap: ComplianceGapThresholds = ComplianceGapThresholds()
	sequence: SequenceConfig = SequenceConfig()
	trend: TrendConfig = TrendConfig()
	degradation: DegradationConfig = DegradationConfig()
	sectors: SectorConfig = SectorConfig()
	time_patterns: TimePatternConfig = TimePatternConfig()


class InsightConfig(BaseModel):
	"""
	Aggregator settings.

	Notes:
	- min_baseline_samples: global samples needed before per-vehicle and
	  per-sector time anomalies are evaluated.
	"""

	max_insights: int = Field(10, ge=1)
	min_baseline_samples: int = Field(4, ge=3)


class Config(BaseSettings):
	"""
	Global configuration with environment overrides.
	"""

	model_config = SettingsConfigDict(
		env_prefix="DISPATCH_",
		env_file=".env",
		env_nested_delimiter="__",
		extra="ignore",
	)

	log_level: str = Field("INFO", description="Default logging level")
	log_to_file: bool = Field(False, description="Also write logs to logs_dir")
	logs_dir: Path = Field(Path("logs"), description="Directory for log files")
	detection: DetectionConfig = DetectionConfig()
	compliance: ComplianceConfig = ComplianceConfig()
	insights: InsightConfig = InsightConfig()

	@model_validator(mode="after")
	def _check_ordering(self) -> "Config":
		zscore = self.detection.zscore
		if zscore.critical < zscore.warning:
			raise ValueError("zscore.critical must be >= zscore.warning")
		iqr = self.detection.iqr
		if iqr.extreme_fence_factor < iqr.fence_factor:
			raise ValueError("iqr.extreme_fence_factor must be >= iqr.fence_factor")
		return self

	def model_post_init(self, __context: object) -> None:
		if self.log_to_file:
			self.logs_dir.mkdir(parents=True, exist_ok=True)


config = Config()
