"""
Built-in rubric catalogs.

Two disjoint catalogs are defined at import time: the title-defense
rubric (scored once per group) and the individual-performance rubric
(scored once per proponent). Each sums to 100 points.
"""

from panelgrade.models import Rubric, RubricItem, RubricLevel


def _levels(*bands: tuple[str, str]) -> tuple[RubricLevel, ...]:
    return tuple(RubricLevel(range=r, description=d) for r, d in bands)


TITLE_DEFENSE_RUBRIC = Rubric(
    title="Title Defense",
    items=(
        RubricItem(
            id="td1",
            criteria=(
                "Develops an analytical, critical paper that provides a description "
                "of how the ideas for the paper were formulated."
            ),
            weight=35,
            levels=_levels(
                (
                    "30-35 points",
                    "The paper is exceptionally well-researched and presents a clear, "
                    "compelling description of how the project's ideas were developed. "
                    "It shows deep analytical and critical thinking.",
                ),
                (
                    "20-29 points",
                    "The paper is solid and describes the formulation of ideas, but it "
                    "may lack some depth or critical analysis.",
                ),
                (
                    "10-19 points",
                    "The paper provides a basic description of the ideas, but it is weak "
                    "in analysis or critical thought.",
                ),
                (
                    "0-9 points",
                    "The paper is disorganized, lacks a clear description of idea "
                    "formulation, or is missing significant content.",
                ),
            ),
        ),
        RubricItem(
            id="td2",
            criteria=(
                "Demonstrates unique/novel ideas for the proposed project and has "
                "societal impact."
            ),
            weight=30,
            levels=_levels(
                (
                    "25-30 points",
                    "The project ideas are highly original and demonstrate significant "
                    "potential for societal impact. The presentation clearly and "
                    "convincingly highlights the novelty and importance of the work.",
                ),
                (
                    "15-24 points",
                    "The ideas are interesting and show some originality, with a "
                    "plausible societal impact.",
                ),
                (
                    "5-14 points",
                    "The ideas are generic or lack originality, and the societal impact "
                    "is unclear or minimal.",
                ),
                ("0-4 points", "The project ideas are unoriginal or are not demonstrated."),
            ),
        ),
        RubricItem(
            id="td3",
            criteria=(
                "Proponents must make sure that required resources and algorithms "
                "are attainable."
            ),
            weight=15,
            levels=_levels(
                (
                    "13-15 points",
                    "The presentation provides a thorough and realistic plan, "
                    "demonstrating that all necessary resources and algorithms are "
                    "easily accessible and feasible for the project.",
                ),
                (
                    "8-12 points",
                    "The plan is mostly realistic, but there may be some minor "
                    "uncertainties regarding resource or algorithm availability.",
                ),
                (
                    "3-7 points",
                    "The plan is questionable, with significant doubts about the "
                    "attainability of resources or algorithms.",
                ),
                ("0-2 points", "No plan is presented or the plan is completely unrealistic."),
            ),
        ),
        RubricItem(
            id="td4",
            criteria="The group shows evidences that the title is feasible for project proposal.",
            weight=20,
            levels=_levels(
                (
                    "18-20 points",
                    "The group provides strong, compelling evidence that the proposed "
                    "title is highly relevant and feasible for the project. The evidence "
                    "is well-supported and convincing.",
                ),
                (
                    "12-17 points",
                    "The evidence is present and supports the feasibility of the title, "
                    "but it may not be as strong or well-articulated.",
                ),
                (
                    "6-11 points",
                    "The evidence provided is weak or only marginally supports the "
                    "title's feasibility.",
                ),
                (
                    "0-5 points",
                    "Little to no evidence is provided, and the title's feasibility is "
                    "highly questionable.",
                ),
            ),
        ),
    ),
)


INDIVIDUAL_GRADE_RUBRIC = Rubric(
    title="Individual Performance",
    items=(
        RubricItem(
            id="ig1",
            criteria=(
                "The presenter is knowledgeable of the materials or matter he/she "
                "discussed."
            ),
            weight=30,
            levels=_levels(
                (
                    "25-30 points",
                    "The presenter demonstrates exceptional mastery of the material, "
                    "answering all questions with confidence and authority.",
                ),
                (
                    "15-24 points",
                    "The presenter shows good knowledge of the material, but there may "
                    "be some minor gaps in understanding.",
                ),
                (
                    "5-14 points",
                    "The presenter struggles with the material and appears unsure of "
                    "the content.",
                ),
                ("0-4 points", "The presenter demonstrates a lack of knowledge or preparation."),
            ),
        ),
        RubricItem(
            id="ig2",
            criteria=(
                "The presenter answers questions directly and did not digress from "
                "the focus of the query."
            ),
            weight=30,
            levels=_levels(
                (
                    "25-30 points",
                    "The presenter answers all questions clearly and directly, staying "
                    "focused on the query without any digression.",
                ),
                (
                    "15-24 points",
                    "The presenter answers most questions directly, but may occasionally "
                    "lose focus or digress slightly.",
                ),
                (
                    "5-14 points",
                    "The presenter often struggles to answer questions directly and "
                    "frequently deviates from the topic.",
                ),
                (
                    "0-4 points",
                    "The presenter fails to answer questions or provides completely "
                    "irrelevant answers.",
                ),
            ),
        ),
        RubricItem(
            id="ig3",
            criteria=(
                "The presenter maintains a comfortable and reasonable pace during "
                "his/her delivery."
            ),
            weight=20,
            levels=_levels(
                (
                    "18-20 points",
                    "The presenter speaks at a perfect pace, allowing the audience to "
                    "easily follow along without feeling rushed or bored.",
                ),
                (
                    "12-17 points",
                    "The presenter's pace is generally good, but they may speak too "
                    "quickly or too slowly at times.",
                ),
                (
                    "6-11 points",
                    "The presenter's pace is distracting, either speaking too fast and "
                    "rushing through the material or too slow and causing the audience "
                    "to lose interest.",
                ),
                ("0-5 points", "The presenter's pace is completely erratic and hinders communication."),
            ),
        ),
        RubricItem(
            id="ig4",
            criteria="The presenter's voice is well-modulated and can be heard throughout the room.",
            weight=10,
            levels=_levels(
                (
                    "9-10 points",
                    "The presenter's voice is consistently clear, loud, and "
                    "well-projected, easily heard throughout the room.",
                ),
                (
                    "5-8 points",
                    "The presenter's voice is mostly clear, but they may occasionally "
                    "mumble or speak too softly.",
                ),
                (
                    "2-4 points",
                    "The presenter's voice is often difficult to hear, either too soft "
                    "or poorly projected.",
                ),
                (
                    "0-1 point",
                    "The presenter's voice is inaudible or the presenter mumbles "
                    "throughout the presentation.",
                ),
            ),
        ),
        RubricItem(
            id="ig5",
            criteria="The presenter is neatly groomed and properly attired.",
            weight=10,
            levels=_levels(
                (
                    "9-10 points",
                    "The presenter's attire is professional and appropriate for the "
                    "occasion, reflecting respect for the audience and the event.",
                ),
                (
                    "5-8 points",
                    "The presenter's attire is acceptable but may not be fully "
                    "professional or appropriate.",
                ),
                ("2-4 points", "The presenter's attire is unprofessional or inappropriate."),
                ("0-1 point", "The presenter's appearance is distracting or disrespectful."),
            ),
        ),
    ),
)
