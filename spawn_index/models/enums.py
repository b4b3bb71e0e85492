"""Closed categorical types used across the spawn index pipelines."""

from enum import Enum


class SurveyMethod(Enum):
    """Spawn survey method recorded for a spawn number.

    Only surface and dive surveys contribute to the spawn index.
    """

    SURFACE = "Surface"
    DIVE = "Dive"
    INCIDENTAL = "Incidental"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: object) -> "SurveyMethod":
        """Parse a raw method string (any case); unrecognised values map to UNKNOWN."""
        if not isinstance(value, str):
            return cls.UNKNOWN
        try:
            return cls(value.strip().title())
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_indexed(self) -> bool:
        return self in (SurveyMethod.SURFACE, SurveyMethod.DIVE)


class Substrate(Enum):
    """Substrate types recorded in surface spawn surveys."""

    GRASS = "grass"
    ROCKWEED = "rockweed"
    KELP = "kelp"
    BROWN_ALGAE = "brown_algae"
    LEAFY_RED = "leafy_red"
    STRINGY_RED = "stringy_red"
    ROCK = "rock"
    OTHER = "other"

    @property
    def layers_column(self) -> str:
        """Column holding the number of egg layers on this substrate."""
        return f"lay_{self.value}"

    @property
    def percent_column(self) -> str:
        """Column holding the percent cover (0-100) of this substrate."""
        return f"{self.value}_percent"

    @classmethod
    def layers_columns(cls) -> list[str]:
        return [substrate.layers_column for substrate in cls]

    @classmethod
    def percent_columns(cls) -> list[str]:
        return [substrate.percent_column for substrate in cls]


class AlgaeType(Enum):
    """Algae type codes used in understory spawn surveys."""

    GRASSES = "GR"
    GRUNGE = "GU"
    KELP = "KE"
    LARGE_KELP = "LK"
    LEAFY_ALGAE = "LA"
    ROCKWEED = "RW"
    SARGASSUM = "SM"
    STRINGY_ALGAE = "ST"

    @staticmethod
    def normalise(value: object) -> object:
        """Strip and upper-case a raw algae type code; non-strings pass through."""
        return value.strip().upper() if isinstance(value, str) else value

    @classmethod
    def parse(cls, value: object) -> "AlgaeType | object":
        """Parse a raw code (any case); unrecognised codes are returned normalised.

        Unknown codes stay visible so the coefficient lookup can report them.
        """
        code = cls.normalise(value)
        try:
            return cls(code)
        except ValueError:
            return code


class IndexKind(Enum):
    """Survey type a spawn index value was calculated from."""

    SURFACE = "surface"
    MACROCYSTIS = "macrocystis"
    UNDERSTORY = "understory"

    @property
    def value_column(self) -> str:
        """Spawn index column in the pipeline result table."""
        return {
            IndexKind.SURFACE: "surf_si",
            IndexKind.MACROCYSTIS: "macro_si",
            IndexKind.UNDERSTORY: "under_si",
        }[self]

    @property
    def layers_column(self) -> str:
        """Diagnostic mean egg layers column in the pipeline biomass table."""
        return {
            IndexKind.SURFACE: "surf_lyrs",
            IndexKind.MACROCYSTIS: "macro_lyrs",
            IndexKind.UNDERSTORY: "under_lyrs",
        }[self]

    @property
    def legacy_name(self) -> str:
        """Spawn index column name in the legacy CSV output."""
        return {
            IndexKind.SURFACE: "SurfSI",
            IndexKind.MACROCYSTIS: "MacroSI",
            IndexKind.UNDERSTORY: "UnderSI",
        }[self]
