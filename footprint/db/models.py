"""
SQLAlchemy ORM models for the tables the material repository reads.
Only the columns the aggregation engine consumes are mapped.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""


# =============================================================================
# Product Models
# =============================================================================


class Product(Base):
    """Product metadata used for per-unit use-phase modelling."""

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    organization_id: Mapped[UUID | None] = mapped_column(nullable=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    unit_size_value: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    unit_size_unit: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
        comment="Container size unit (ml, cl, l)",
    )
    functional_unit: Mapped[str | None] = mapped_column(String(100), nullable=True)
    product_category: Mapped[str | None] = mapped_column(String(100), nullable=True)


# =============================================================================
# Product Carbon Footprint Models
# =============================================================================


class ProductCarbonFootprint(Base):
    """PCF header: which product and organization an assessment belongs to."""

    __tablename__ = "product_carbon_footprints"

    id: Mapped[UUID] = mapped_column(primary_key=True)
    organization_id: Mapped[UUID | None] = mapped_column(nullable=True)
    product_id: Mapped[int | None] = mapped_column(
        ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
    )
    system_boundary: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        comment="cradle-to-gate, cradle-to-shelf, cradle-to-consumer or cradle-to-grave",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    product: Mapped[Product | None] = relationship()
    materials: Mapped[list["ProductCarbonFootprintMaterial"]] = relationship(
        back_populates="footprint",
        cascade="all, delete-orphan",
    )


class ProductCarbonFootprintMaterial(Base):
    """One material impact row of a PCF, as produced by factor resolution."""

    __tablename__ = "product_carbon_footprint_materials"

    id: Mapped[UUID] = mapped_column(primary_key=True)
    product_carbon_footprint_id: Mapped[UUID] = mapped_column(
        ForeignKey("product_carbon_footprints.id", ondelete="CASCADE"),
        nullable=False,
    )
    material_name: Mapped[str] = mapped_column(Text, nullable=False)
    material_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    category_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    packaging_category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    quantity: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    unit: Mapped[str | None] = mapped_column(String(20), nullable=True)

    impact_climate: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    impact_climate_fossil: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    impact_climate_biogenic: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    impact_climate_dluc: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    impact_transport: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    impact_water: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    impact_water_scarcity: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    impact_land: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    impact_waste: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    impact_terrestrial_ecotoxicity: Mapped[Decimal | None] = mapped_column(
        Numeric, nullable=True
    )
    impact_freshwater_eutrophication: Mapped[Decimal | None] = mapped_column(
        Numeric, nullable=True
    )
    impact_terrestrial_acidification: Mapped[Decimal | None] = mapped_column(
        Numeric, nullable=True
    )
    impact_fossil_resource_scarcity: Mapped[Decimal | None] = mapped_column(
        Numeric, nullable=True
    )

    ch4_fossil_kg: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    ch4_biogenic_kg: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    n2o_kg: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    hfc_pfc_kg_co2e: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)

    confidence_score: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    data_quality_grade: Mapped[str | None] = mapped_column(String(20), nullable=True)
    data_source: Mapped[str | None] = mapped_column(String(100), nullable=True)

    footprint: Mapped[ProductCarbonFootprint] = relationship(back_populates="materials")

    __table_args__ = (
        Index("ix_pcf_materials_footprint", "product_carbon_footprint_id"),
    )


MATERIAL_ROW_COLUMNS: tuple[str, ...] = tuple(
    column.key
    for column in ProductCarbonFootprintMaterial.__table__.columns
    if column.key != "product_carbon_footprint_id"
)
