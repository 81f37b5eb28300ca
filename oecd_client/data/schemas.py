"""SDMX-JSON schemas - data and structure messages."""

from pydantic import BaseModel, Field


class CodeSchema(BaseModel):
    """Code (or dimension value) with an optional label."""

    id: str
    name: str | None = None


class ObservationDimensionSchema(BaseModel):
    """Dimension as listed in a data message's structure block."""

    id: str
    name: str | None = None
    key_position: int | None = Field(alias="keyPosition", default=None)
    values: list[CodeSchema] = []

    class Config:
        populate_by_name = True


class DimensionsSchema(BaseModel):
    """Dimensions block of a data message structure."""

    observation: list[ObservationDimensionSchema] = []


class DataStructureSchema(BaseModel):
    """Structure block of a data message."""

    dimensions: DimensionsSchema = DimensionsSchema()


class DataSetSchema(BaseModel):
    """Data set keyed by 'i:j:k' observation indices."""

    observations: dict[str, list] = {}


class DataMessageSchema(BaseModel):
    """SDMX-JSON data message body (1.0 and 2.0 layouts)."""

    data_sets: list[DataSetSchema] = Field(alias="dataSets", default=[])
    structures: list[DataStructureSchema] = []
    structure: DataStructureSchema | None = None

    class Config:
        populate_by_name = True

    def dimensions(self) -> list[ObservationDimensionSchema]:
        """Observation-level dimensions, whichever layout was used."""
        if self.structures:
            return self.structures[0].dimensions.observation
        if self.structure:
            return self.structure.dimensions.observation
        return []


class LocalRepresentationSchema(BaseModel):
    """Representation pointing to a codelist URN."""

    enumeration: str | None = None


class StructureDimensionSchema(BaseModel):
    """Dimension in a data structure definition."""

    id: str
    position: int | None = None
    name: str | None = None
    local_representation: LocalRepresentationSchema | None = Field(alias="localRepresentation", default=None)

    class Config:
        populate_by_name = True


class DimensionListSchema(BaseModel):
    """Regular and time dimensions of a DSD."""

    dimensions: list[StructureDimensionSchema] = []
    time_dimensions: list[StructureDimensionSchema] = Field(alias="timeDimensions", default=[])

    class Config:
        populate_by_name = True


class DataStructureComponentsSchema(BaseModel):
    """Components of a DSD."""

    dimension_list: DimensionListSchema = Field(alias="dimensionList", default=DimensionListSchema())

    class Config:
        populate_by_name = True


class DataStructureDefinitionSchema(BaseModel):
    """Data structure definition (DSD)."""

    id: str
    name: str | None = None
    components: DataStructureComponentsSchema = Field(
        alias="dataStructureComponents", default=DataStructureComponentsSchema()
    )

    class Config:
        populate_by_name = True


class CodelistSchema(BaseModel):
    """Codelist with its codes."""

    id: str
    codes: list[CodeSchema] = []


class StructureMessageSchema(BaseModel):
    """SDMX-JSON structure message body."""

    data_structures: list[DataStructureDefinitionSchema] = Field(alias="dataStructures", default=[])
    codelists: list[CodelistSchema] = []

    class Config:
        populate_by_name = True
