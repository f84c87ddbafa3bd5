"""
Random Map Script Token Catalog

Static registry of every command, attribute, section and flow token the
game understands, with argument types and the context the token may
appear in.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from types import MappingProxyType
from typing import Dict, Iterator, Optional, Tuple

MAX_ARGS = 4


class ArgType(Enum):
    """Types of token arguments."""
    WORD = 1            # literal string, no spaces
    NUMBER = 2          # 12, -35, rnd(1,5)
    TOKEN = 3           # a name with a value (#const)
    OPTIONAL_TOKEN = 4  # a possibly-present name (#define)
    FILENAME = 5


class ContextKind(Enum):
    """Where a token may appear."""
    FLOW = auto()                 # flow control, just about anywhere
    SECTION = auto()              # <SECTION>, top level
    COMMAND = auto()              # top level command with a block
    TOP_LEVEL_ATTRIBUTE = auto()  # top level attribute
    ATTRIBUTE = auto()            # attribute inside a command block
    ANY_OF = auto()               # one of several contexts


@dataclass(frozen=True)
class TokenContext:
    """
    Describes where a token is syntactically legal.

    `target` is the required <SECTION> for COMMAND/TOP_LEVEL_ATTRIBUTE, or
    the required parent command for ATTRIBUTE. `options` holds the
    alternatives for ANY_OF.
    """
    kind: ContextKind
    target: Optional[str] = None
    options: Tuple['TokenContext', ...] = ()

    @classmethod
    def flow(cls) -> 'TokenContext':
        return cls(ContextKind.FLOW)

    @classmethod
    def section(cls) -> 'TokenContext':
        return cls(ContextKind.SECTION)

    @classmethod
    def command(cls, section: Optional[str] = None) -> 'TokenContext':
        return cls(ContextKind.COMMAND, section)

    @classmethod
    def top_level_attribute(cls, section: Optional[str] = None) -> 'TokenContext':
        return cls(ContextKind.TOP_LEVEL_ATTRIBUTE, section)

    @classmethod
    def attribute(cls, parent: Optional[str] = None) -> 'TokenContext':
        return cls(ContextKind.ATTRIBUTE, parent)

    @classmethod
    def any_of(cls, *options: 'TokenContext') -> 'TokenContext':
        return cls(ContextKind.ANY_OF, options=tuple(options))

    def flatten(self) -> Iterator['TokenContext']:
        """Yield the concrete contexts, expanding ANY_OF."""
        if self.kind == ContextKind.ANY_OF:
            for option in self.options:
                yield from option.flatten()
        else:
            yield self


@dataclass(frozen=True)
class TokenType:
    """Describes a token: its name, where it can appear, and its arguments."""
    name: str
    context: TokenContext
    arg_types: Tuple[Optional[ArgType], ...] = field(default=())

    def __post_init__(self):
        if len(self.arg_types) > MAX_ARGS:
            raise ValueError(f"{self.name}: at most {MAX_ARGS} arguments, got {len(self.arg_types)}")
        padded = tuple(self.arg_types) + (None,) * (MAX_ARGS - len(self.arg_types))
        seen_empty = False
        for arg_type in padded:
            if arg_type is None:
                seen_empty = True
            elif seen_empty:
                raise ValueError(f"{self.name}: argument slots must not be sparse")
        object.__setattr__(self, 'arg_types', padded)

    def arg_type(self, n: int) -> Optional[ArgType]:
        """Get the type of the `n`th argument, or None past the end."""
        if 0 <= n < MAX_ARGS:
            return self.arg_types[n]
        return None

    def arg_len(self) -> int:
        """Number of arguments this token takes."""
        for index, arg_type in enumerate(self.arg_types):
            if arg_type is None:
                return index
        return MAX_ARGS

    @property
    def is_section(self) -> bool:
        return self.context.kind == ContextKind.SECTION


W = ArgType.WORD
N = ArgType.NUMBER
T = ArgType.TOKEN
OT = ArgType.OPTIONAL_TOKEN
F = ArgType.FILENAME


def _build_tokens() -> Dict[str, TokenType]:
    tokens: Dict[str, TokenType] = {}

    def add(name: str, context: TokenContext, *args: ArgType) -> None:
        tokens[name] = TokenType(name, context, tuple(args))

    flow = TokenContext.flow()
    section = TokenContext.section()
    cmd = TokenContext.command
    top = TokenContext.top_level_attribute
    attr = TokenContext.attribute
    any_of = TokenContext.any_of

    add("#define", flow, W)
    add("#undefine", flow, W)
    add("#const", flow, W, N)

    add("if", flow, OT)
    add("elseif", flow, OT)
    add("else", flow)
    add("endif", flow)

    add("start_random", flow)
    add("percent_chance", flow, N)
    add("end_random", flow)

    add("#include", flow, F)
    add("#include_drs", flow, F, N)

    for name in ("<PLAYER_SETUP>", "<LAND_GENERATION>", "<ELEVATION_GENERATION>",
                 "<TERRAIN_GENERATION>", "<CLIFF_GENERATION>", "<OBJECTS_GENERATION>",
                 "<CONNECTION_GENERATION>"):
        add(name, section)

    player_setup = top("<PLAYER_SETUP>")
    add("color_correction", top(None), T)
    add("ai_info_map_type", player_setup, T, N, N, N)
    add("random_placement", player_setup)
    add("direct_placement", player_setup)
    add("circle_placement", player_setup)
    add("circle_radius", player_setup, N)
    add("nomad_resources", player_setup)
    add("grouped_by_team", player_setup)
    add("terrain_state", player_setup, N, N, N, N)
    add("weather_type", player_setup, N, N, N, N)
    add("guard_state", player_setup, T, T, N, N)
    add("enable_waves", player_setup, N)
    add("terrain_mask", player_setup, N)
    add("effect_amount", any_of(player_setup, cmd("<PLAYER_SETUP>")), T, T, T, N)
    add("effect_percent", any_of(player_setup, cmd("<PLAYER_SETUP>")), T, T, T, N)

    land = any_of(attr("create_land"), attr("create_player_lands"))
    add("create_land", cmd("<LAND_GENERATION>"))
    add("create_player_lands", cmd("<LAND_GENERATION>"))
    add("land_percent", land, N)
    add("land_position", land, N, N)
    add("land_id", land, N)
    add("terrain_type", any_of(attr("create_land"), attr("create_player_lands"),
                               attr("create_terrain")), T)
    add("base_size", land, N)
    add("base_elevation", land, N)
    add("left_border", land, N)
    add("right_border", land, N)
    add("top_border", land, N)
    add("bottom_border", land, N)
    add("border_fuzziness", land, N)
    add("zone", land, N)
    add("set_zone_by_team", land)
    add("set_zone_randomly", land)
    add("other_zone_avoidance_distance", land, N)
    add("assign_to_player", attr("create_land"), N)
    add("assign_to", attr("create_land"), T, N, N, N)

    add("base_terrain", any_of(
        top("<LAND_GENERATION>"),
        attr("create_land"),
        attr("create_player_lands"),
        attr("create_elevation"),
        attr("create_terrain"),
        attr("create_object"),
    ), T)

    cliffs = top("<CLIFF_GENERATION>")
    add("min_number_of_cliffs", cliffs, N)
    add("max_number_of_cliffs", cliffs, N)
    add("min_length_of_cliff", cliffs, N)
    add("max_length_of_cliff", cliffs, N)
    add("cliff_curliness", cliffs, N)
    add("min_distance_cliffs", cliffs, N)
    add("min_terrain_distance", cliffs, N)

    terrain_or_elevation = any_of(attr("create_terrain"), attr("create_elevation"))
    add("create_terrain", cmd("<TERRAIN_GENERATION>"), T)
    add("percent_of_land", attr("create_terrain"), N)
    add("number_of_tiles", terrain_or_elevation, N)
    add("number_of_clumps", terrain_or_elevation, N)
    add("set_scale_by_groups", terrain_or_elevation)
    add("set_scale_by_size", terrain_or_elevation)
    add("spacing_to_other_terrain_types", attr("create_terrain"), N)
    add("height_limits", attr("create_terrain"), N, N)
    add("set_flat_terrain_only", attr("create_terrain"))
    add("set_avoid_player_start_areas", attr("create_terrain"))
    add("clumping_factor", attr("create_terrain"), N)
    add("base_layer", attr("create_terrain"), T)

    add("create_object", cmd("<OBJECTS_GENERATION>"), T)
    obj = attr("create_object")
    add("set_scaling_to_map_size", obj)
    add("set_scaling_to_player_number", obj)
    add("number_of_groups", obj, N)
    add("number_of_objects", obj, N)
    add("group_variance", obj, N)
    add("group_placement_radius", obj, N)
    add("set_loose_grouping", obj)
    add("set_tight_grouping", obj)
    add("terrain_to_place_on", obj, T)
    add("layer_to_place_on", obj, T)
    add("set_gaia_object_only", obj)
    add("set_place_for_every_player", obj)
    add("place_on_specific_land_id", obj, N)
    add("min_distance_to_players", obj, N)
    add("max_distance_to_players", obj, N)
    add("max_distance_to_other_zones", obj, N)
    add("min_distance_group_placement", obj, N)
    add("temp_min_distance_group_placement", obj, N)
    add("resource_delta", obj, N)
    add("avoid_forest_zone", obj, N)
    add("place_on_forest_zone", obj)
    add("avoid_cliff_zone", obj, N)
    add("actor_area", obj, N)
    add("actor_area_radius", obj, N)
    add("actor_area_to_place_in", obj, N)
    add("avoid_actor_area", obj, N)
    add("avoid_all_actor_areas", obj)
    add("force_placement", obj)
    add("find_closest", obj)
    add("second_object", obj, T)

    connection = cmd("<CONNECTION_GENERATION>")
    connect = any_of(
        attr("create_connect_all_players_land"),
        attr("create_connect_teams_lands"),
        attr("create_connect_same_land_zones"),
        attr("create_connect_all_lands"),
        attr("create_connect_to_nonplayer_land"),
    )
    add("create_connect_all_players_land", connection)
    add("create_connect_teams_lands", connection)
    add("create_connect_same_land_zones", connection)
    add("create_connect_all_lands", connection)
    add("create_connect_to_nonplayer_land", connection)
    add("replace_terrain", connect, T, T)
    add("terrain_cost", connect, T, N)
    add("terrain_size", connect, T, N, N)
    add("default_terrain_replacement", connect, T)

    add("create_elevation", cmd("<ELEVATION_GENERATION>"), N)
    add("spacing", attr("create_elevation"), N)
    add("enable_balanced_elevation", attr("create_elevation"))

    return tokens


# All known tokens, indexed by their exact name.
TOKENS = MappingProxyType(_build_tokens())


def lookup(name: str) -> Optional[TokenType]:
    """Find a token type by its exact, case-sensitive name."""
    return TOKENS.get(name)


def is_section_name(value: str) -> bool:
    """Whether a word is shaped like a <SECTION> marker."""
    return value.startswith('<') and value.endswith('>')
