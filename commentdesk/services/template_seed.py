"""Starter comment bank for a jurisdiction."""

from commentdesk.models.domain.template_domain import NewTemplate

# (text, extra tags, email subject)
_LEARNING_SKILLS: tuple[tuple[str, tuple[str, ...], str | None], ...] = (
    # Openers, tagged with level
    ("{{First}} has demonstrated strong learning skills this term.", ("opener", "level:e"), None),
    ("{{First}} is making steady progress in learning skills.", ("opener", "level:g"), None),
    ("{{First}} is developing learning skills with growing consistency.", ("opener", "level:s"), None),
    ("{{First}} would benefit from additional support to build learning skills.", ("opener", "level:n"), None),
    # Category statements
    (
        "{{First}} submits assignments on time and takes responsibility for {{their}} learning.",
        ("category:responsibility", "level:e"),
        None,
    ),
    ("{{First}} is organizing materials more consistently.", ("category:organization", "level:g"), None),
    ("{{First}} completes tasks with reminders and support.", ("category:independent-work", "level:s"), None),
    ("{{First}} is learning to collaborate respectfully with peers.", ("category:collaboration", "level:s"), None),
    ("{{First}} shows initiative by volunteering and taking on challenges.", ("category:initiative", "level:e"), None),
    ("{{First}} is developing strategies to self-regulate during work time.", ("category:self-regulation", "level:s"), None),
    # Next steps, tagged by category
    ("Continue to use a planner to record tasks and deadlines.", ("next-steps", "category:organization"), None),
    ("Set a small goal each class and reflect briefly at the end.", ("next-steps", "category:responsibility"), None),
    ("Use checklists to complete multi-step tasks independently.", ("next-steps", "category:independent-work"), None),
    ("Invite a peer to share ideas and build on others' thinking.", ("next-steps", "category:collaboration"), None),
    ("Seek feedback and try an extension task when finished early.", ("next-steps", "category:initiative"), None),
    ("Practice short breaks and deep breaths to refocus.", ("next-steps", "category:self-regulation"), None),
)

_EMAILS: tuple[tuple[str, tuple[str, ...], str | None], ...] = (
    (
        "Hello {{guardian_name}}, {{First}} has been making steady progress in {{subject_or_class}}.",
        ("email", "topic:progress"),
        "Quick update about {{first}}",
    ),
    (
        "Hello {{guardian_name}}, I'm reaching out regarding {{first}}'s recent challenges with {{topic}}.",
        ("email", "topic:concern"),
        "Support plan for {{first}}",
    ),
)


def starter_templates(jurisdiction: str) -> list[NewTemplate]:
    """Learning-skill statements and email samples tagged for ``jurisdiction``."""
    base = ("learning", jurisdiction)
    templates = [
        NewTemplate(text=text, tags=[*base, *tags], subject=subject)
        for text, tags, subject in _LEARNING_SKILLS
    ]
    templates.extend(
        NewTemplate(text=text, tags=[*tags, jurisdiction], subject=subject)
        for text, tags, subject in _EMAILS
    )
    return templates
