"""
Claim Stake Simulator - Engine Constants
==========================================
Central registry of the numbers and ids the engine depends on.
Game balance lives in the catalog; these are the few values the engine
itself has to know about.
"""

# ---------------------------------------------------------------------------
# Fuel
# ---------------------------------------------------------------------------

FUEL_RESOURCE = "cargo-fuel"
FUEL_PER_TIER = 1000          # initial fuel and resupply cap = tier * 1000

# Resources held only on the stake ledger, never credited to the global pool.
STAKE_SCOPED_RESOURCES = frozenset({FUEL_RESOURCE})

# Fuel drain (units/s) injected at catalog load for buildings that declare no
# fuel rate of their own. Matched against building ids by substring.
FUEL_ROLE_DRAIN = {
    "central-hub": 0.1,
    "power-plant": 0.1,
}

# ---------------------------------------------------------------------------
# Starter hub
# ---------------------------------------------------------------------------

STARTER_HUB_TAG = "tag-starter-hub"
LEGACY_STARTER_HUB_NAME = "Central Hub T1"

# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------

DEFAULT_SPEED = 1.0
SNAPSHOT_INTERVAL = 60.0      # simulated seconds between report snapshots
EPSILON = 1e-9                # amounts and timers below this are treated as zero

# Catalog sections the loader insists on.
REQUIRED_SECTIONS = (
    "claimStakeDefinitions",
    "claimStakeBuildings",
    "planetArchetypes",
    "planets",
)
