from pydantic import BaseModel, ConfigDict, Field

from storefront.cache.stats import CacheStats


class CacheStatsReport(BaseModel):
    """Body of ``GET /cache/stats``. Serialize with ``by_alias=True``."""

    model_config = ConfigDict(populate_by_name=True)

    hits: int
    misses: int
    hit_ratio: float = Field(alias="hitRatio")
    entries: int
    size_in_mb: float = Field(alias="sizeInMB")
    popular_resources: dict[str, int] = Field(alias="popularResources")

    @classmethod
    def from_stats(cls, stats: CacheStats, top: int = 10) -> "CacheStatsReport":
        return cls(
            hits=stats.hits,
            misses=stats.misses,
            hit_ratio=stats.hit_ratio,
            entries=stats.entries,
            size_in_mb=stats.size_in_mb,
            popular_resources=stats.top_resources(top),
        )
