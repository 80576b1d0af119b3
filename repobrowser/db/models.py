"""
Repository Browser Store Models — Update-site catalog and raw unit records.

Tables defined here:
1. update_sites  — One row per update site (catalog)
2. unit_records  — Feature, plugin and fragment records with their binaries
"""

from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    JSON,
    LargeBinary,
    String,
    Text,
)
from sqlalchemy.orm import deferred, relationship

from repobrowser.db.base import Base

UNIT_KINDS = ("feature", "plugin", "fragment")


# ---------------------------------------------------------------------------
# 1. Update sites
# ---------------------------------------------------------------------------

class UpdateSiteEntry(Base):
    __tablename__ = "update_sites"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False, default="", index=True)
    title = Column(String(255), nullable=True)
    last_modified = Column(BigInteger, default=0, nullable=False)

    records = relationship(
        "UnitRecord",
        back_populates="site",
        lazy="select",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<UpdateSiteEntry(id={self.id}, name='{self.name}')>"


# ---------------------------------------------------------------------------
# 2. Unit records
# ---------------------------------------------------------------------------

class UnitRecord(Base):
    """
    One raw record of an update site.

    kind is stored unchecked so the reader can reject unknown forms
    explicitly; binaries are deferred and never loaded by listings.
    """
    __tablename__ = "unit_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    site_id = Column(Integer, ForeignKey("update_sites.id", ondelete="CASCADE"), nullable=False)
    kind = Column(String(20), nullable=False)
    unit_id = Column(String(255), nullable=False, default="")
    version = Column(String(100), nullable=True)

    # Feature descriptors
    label = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    description_url = Column(String(500), nullable=True)
    provider_name = Column(String(255), nullable=True)
    license = Column(Text, nullable=True)
    license_url = Column(String(500), nullable=True)
    copyright = Column(Text, nullable=True)
    copyright_url = Column(String(500), nullable=True)
    category = Column(String(255), nullable=True)
    enabled = Column(Boolean, default=True, nullable=False)
    import_features = Column(JSON, nullable=True)
    import_versions = Column(JSON, nullable=True)
    plugin_ids = Column(JSON, nullable=True)
    plugin_versions = Column(JSON, nullable=True)

    # Plugin descriptors
    manifest = Column(Text, nullable=True)

    # Binary
    file_name = Column(String(255), nullable=True)
    file_data = deferred(Column(LargeBinary, nullable=True))
    file_last_modified = Column(BigInteger, default=0, nullable=False)

    site = relationship("UpdateSiteEntry", back_populates="records")

    __table_args__ = (
        Index("idx_unit_records_site_kind", "site_id", "kind"),
    )

    def __repr__(self) -> str:
        return f"<UnitRecord(id={self.id}, kind='{self.kind}', unit_id='{self.unit_id}', version='{self.version}')>"
