"""Canned articles served when no live source is configured or every source failed.

Each set is keyed by a handful of topic keywords; ``canned_articles`` returns
the first set whose keywords appear in the topic, or the AI set by default.
"""

from __future__ import annotations

from newsroom.models import Article

_AI = [
    Article(
        title="QuantumLeap AI Unveils Groundbreaking Personalized Drug Discovery Platform",
        source="BioTech Insights Daily",
        summary=(
            "QuantumLeap AI has launched 'GeneRx', a platform that uses AI to analyse "
            "genomic data and predict drug responses with 95% accuracy. The system can "
            "identify personalised treatment options for complex diseases within hours."
        ),
    ),
    Article(
        title="New Neural Network Enables Robots to Perform Delicate Surgical Tasks",
        source="Robotics Weekly",
        summary=(
            "Researchers have developed 'SynapseHand', a neural network that gives robots "
            "unprecedented dexterity for surgical procedures. In trials it performed "
            "microsurgery with accuracy surpassing human surgeons."
        ),
    ),
    Article(
        title="OmniGen AI Releases 'Nexus', a Unified Multimodal Generative Model",
        source="AI Innovation Hub",
        summary=(
            "OmniGen AI has unveiled 'Nexus', a generative model that creates cohesive "
            "text, images and video from a single prompt, a step towards fully unified "
            "multimodal content creation."
        ),
    ),
    Article(
        title="GridFlow AI's 'EcoGrid' Optimizes Renewable Energy Management",
        source="GreenTech Today",
        summary=(
            "GridFlow AI's predictive algorithm balances supply and demand on national "
            "grids in real time. Pilot programmes across Europe report a 40% reduction "
            "in wasted energy."
        ),
    ),
    Article(
        title="'ClarityNet' Brings Transparency to Complex AI Models",
        source="AI Ethics Journal",
        summary=(
            "A new framework called 'ClarityNet' makes the decisions of large models "
            "interpretable, addressing the black-box problem that has slowed AI adoption "
            "in healthcare and law."
        ),
    ),
]

_QUANTUM = [
    Article(
        title="Error-Corrected Logical Qubits Hold State for a Full Second",
        source="Quantum Frontier",
        summary=(
            "A research consortium reports logical qubits that preserved their state for "
            "over one second using surface-code error correction, a hundredfold "
            "improvement on last year's record."
        ),
    ),
    Article(
        title="Photonic Processor Solves Logistics Problem Beyond Classical Reach",
        source="Compute Weekly",
        summary=(
            "A photonic quantum processor optimised a 2,000-node delivery network in "
            "minutes. The team says the same problem would take classical solvers days "
            "to approximate."
        ),
    ),
    Article(
        title="Banks Begin Migrating to Post-Quantum Cryptography",
        source="Financial Tech Review",
        summary=(
            "Several major banks have started replacing RSA key exchange with "
            "lattice-based schemes, citing the steady progress of quantum hardware as a "
            "reason to move before standards deadlines."
        ),
    ),
    Article(
        title="Room-Temperature Qubit Material Shows Promise in Early Tests",
        source="Materials Today Digest",
        summary=(
            "Physicists have demonstrated coherent spin qubits in a diamond-like material "
            "at room temperature, hinting at quantum devices that do not need dilution "
            "refrigerators."
        ),
    ),
    Article(
        title="Cloud Providers Add Quantum Simulators to Developer Free Tiers",
        source="Dev Cloud News",
        summary=(
            "Developers can now run small quantum circuits on managed simulators at no "
            "cost, a move aimed at growing the pool of engineers ready for real quantum "
            "hardware."
        ),
    ),
]

_SPACE = [
    Article(
        title="Lunar Gateway Module Completes First Crewed Docking Test",
        source="Orbital Times",
        summary=(
            "Astronauts docked with the habitation module of the lunar gateway for the "
            "first time, validating life-support systems ahead of longer missions."
        ),
    ),
    Article(
        title="Reusable Heavy-Lift Rocket Flies Its Tenth Mission",
        source="Launch Report",
        summary=(
            "The booster landed successfully after its tenth flight, bringing the cost per "
            "kilogram to orbit to a new low and opening the door to larger deep-space "
            "payloads."
        ),
    ),
    Article(
        title="Space Telescope Detects Water Vapour on a Temperate Exoplanet",
        source="Cosmos Daily",
        summary=(
            "Spectra from a temperate super-Earth show clear water-vapour signatures, "
            "making it a leading target in the search for habitable worlds."
        ),
    ),
]

_CLIMATE = [
    Article(
        title="Direct Air Capture Plant Reaches Megaton Scale",
        source="Climate Solutions Weekly",
        summary=(
            "The largest direct air capture facility yet now removes a million tonnes of "
            "CO2 per year, storing it in basalt formations where it mineralises."
        ),
    ),
    Article(
        title="Grid-Scale Iron-Air Batteries Enter Commercial Service",
        source="Energy Storage Journal",
        summary=(
            "Utilities have switched on iron-air battery farms that can deliver power for "
            "100 hours, smoothing out multi-day lulls in wind and solar output."
        ),
    ),
    Article(
        title="Regenerative Farming Pilot Cuts Fertiliser Use by a Third",
        source="AgriFuture",
        summary=(
            "A three-year pilot across 400 farms reports lower fertiliser use and higher "
            "soil carbon without any drop in crop yields."
        ),
    ),
]

_MEDICAL = [
    Article(
        title="Wearable Patch Detects Sepsis Hours Before Symptoms",
        source="Health Tech Today",
        summary=(
            "A skin patch that tracks inflammatory markers in sweat flagged sepsis an "
            "average of six hours before clinical symptoms in a hospital trial."
        ),
    ),
    Article(
        title="Gene-Editing Therapy Approved for Inherited Blindness",
        source="Medical Innovation Review",
        summary=(
            "Regulators approved a one-time gene-editing treatment that restored partial "
            "sight in most trial participants with a rare inherited retinal disease."
        ),
    ),
    Article(
        title="AI Triage Tool Shortens Emergency Room Waits",
        source="Clinical Systems Weekly",
        summary=(
            "Hospitals using an AI triage assistant report waiting times down by a quarter, "
            "with no increase in missed critical cases."
        ),
    ),
]

#: (keywords, articles) pairs checked in order.
CANNED_SETS: list[tuple[tuple[str, ...], list[Article]]] = [
    (("quantum",), _QUANTUM),
    (("space", "nasa", "rocket", "astronom", "planet"), _SPACE),
    (("climate", "carbon", "energy", "renewable"), _CLIMATE),
    (("medical", "medicine", "health", "disease"), _MEDICAL),
    (("ai", "artificial intelligence", "machine learning"), _AI),
]

DEFAULT_ARTICLES = _AI


def canned_articles(topic: str) -> list[Article]:
    """Return a copy of the canned article set matching *topic*."""
    words = topic.lower().split()
    lowered = topic.lower()
    for keywords, articles in CANNED_SETS:
        for keyword in keywords:
            # short keywords must match a whole word ("ai" must not match "rain")
            hit = keyword in words if len(keyword) <= 3 else keyword in lowered
            if hit:
                return [a.model_copy() for a in articles]
    return [a.model_copy() for a in DEFAULT_ARTICLES]
