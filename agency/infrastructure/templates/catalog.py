"""Built-in workflow blueprints keyed by service type and tier.

Each blueprint is declared as plain data and converted to a
WorkflowTemplateEntity on demand. Milestones list the task orders that must
be completed for the milestone to be reached.
"""

from __future__ import annotations

from typing import Any

from agency.domain.entities import Milestone, TaskBlueprint, WorkflowTemplateEntity
from agency.shared.utils.generators import generate_cuid


def _task(
    order: int,
    title: str,
    description: str,
    hours: float,
    skills: list[str],
    *,
    depends: tuple[int, ...] = (),
    client: bool = False,
) -> dict[str, Any]:
    return {
        "order": order,
        "title": title,
        "description": description,
        "estimated_hours": hours,
        "required_skills": skills,
        "dependencies": depends,
        "visible_to_client": client,
    }


BLUEPRINTS: dict[str, dict[str, dict[str, Any]]] = {
    "web-development": {
        "starter": {
            "display_name": "Website Development - Starter",
            "estimated_duration": 14,
            "estimated_hours": 30,
            "tasks": [
                _task(1, "Initial Client Consultation",
                      "Gather requirements, brand guidelines, content, and design preferences",
                      2, ["project_management"], client=True),
                _task(2, "Design Mockup Creation",
                      "Create homepage and key page designs for approval",
                      8, ["web_design", "ui_ux"], client=True),
                _task(3, "Design Approval",
                      "Present designs to client and incorporate feedback",
                      2, ["project_management"], depends=(2,), client=True),
                _task(4, "Frontend Development",
                      "Build responsive website with approved designs",
                      12, ["web_development", "frontend"], depends=(3,)),
                _task(5, "Content Integration",
                      "Add client content, images, and optimize for web",
                      4, ["web_development", "content_creation"], depends=(4,)),
                _task(6, "Basic SEO Setup",
                      "Implement meta tags, sitemap, and basic on-page SEO",
                      2, ["seo"], depends=(5,)),
                _task(7, "Final Review & Launch",
                      "Client review, final adjustments, and site launch",
                      3, ["project_management", "web_development"], depends=(6,), client=True),
            ],
            "milestones": [
                ("Design Approved", (2, 3)),
                ("Development Complete", (4, 5)),
                ("Launched", (7,)),
            ],
        },
        "growth": {
            "display_name": "Website Development - Growth",
            "estimated_duration": 30,
            "estimated_hours": 60,
            "tasks": [
                _task(1, "Discovery & Strategy Session",
                      "Deep dive into business goals, target audience, and competitive analysis",
                      3, ["project_management", "strategy"], client=True),
                _task(2, "Sitemap & Wireframes",
                      "Create detailed sitemap and wireframes for all pages",
                      6, ["ui_ux", "web_design"], client=True),
                _task(3, "Custom Design System",
                      "Create comprehensive design system with custom branding",
                      12, ["web_design", "branding"], depends=(2,)),
                _task(4, "Design Approval & Revisions",
                      "Client review and up to 3 revision rounds",
                      4, ["project_management"], depends=(3,), client=True),
                _task(5, "Frontend Development",
                      "Build fully responsive website with custom features",
                      20, ["web_development", "frontend"], depends=(4,)),
                _task(6, "Backend & CMS Setup",
                      "Configure content management system and database",
                      8, ["web_development", "backend"], depends=(5,)),
                _task(7, "Content Creation & Integration",
                      "Professional content writing and media optimization",
                      6, ["content_creation", "copywriting"], depends=(6,)),
                _task(8, "SEO & Performance Optimization",
                      "Advanced on-page SEO and speed optimization",
                      4, ["seo", "web_development"], depends=(7,)),
                _task(9, "Testing & QA",
                      "Cross-browser testing, mobile testing, and bug fixes",
                      4, ["qa", "web_development"], depends=(8,)),
                _task(10, "Launch & Training",
                      "Deploy site and train client on CMS",
                      3, ["project_management"], depends=(9,), client=True),
            ],
            "milestones": [
                ("Strategy Approved", (1, 2)),
                ("Design Approved", (3, 4)),
                ("Development Complete", (5, 6, 7)),
                ("Launched", (10,)),
            ],
        },
    },
    "seo": {
        "growth": {
            "display_name": "SEO - Growth Package",
            "estimated_duration": 90,
            "estimated_hours": 40,
            "tasks": [
                _task(1, "SEO Audit & Analysis",
                      "Comprehensive site audit, keyword research, and competitor analysis",
                      6, ["seo"], client=True),
                _task(2, "Strategy Development",
                      "Create 3-month SEO roadmap and content strategy",
                      4, ["seo", "strategy"], depends=(1,), client=True),
                _task(3, "Technical SEO Fixes",
                      "Implement site speed, mobile, and technical improvements",
                      8, ["seo", "web_development"], depends=(2,)),
                _task(4, "On-Page Optimization",
                      "Optimize meta tags, headers, and content for target keywords",
                      6, ["seo", "content_creation"], depends=(3,)),
                _task(5, "Content Creation (Month 1)",
                      "Create and optimize 4 blog posts/articles",
                      8, ["content_creation", "seo"], depends=(4,)),
                _task(6, "Link Building Campaign",
                      "Build 10-15 quality backlinks through outreach",
                      6, ["seo", "outreach"], depends=(4,)),
                _task(7, "Monthly Reporting & Optimization",
                      "Track rankings, traffic, and adjust strategy",
                      2, ["seo", "analytics"], depends=(5, 6), client=True),
            ],
            "milestones": [
                ("Audit Complete", (1,)),
                ("Technical Setup", (3, 4)),
                ("First Month Execution", (5, 6)),
                ("First Report Delivered", (7,)),
            ],
        },
    },
    "social-media": {
        "growth": {
            "display_name": "Social Media Management - Growth",
            "estimated_duration": 30,
            "estimated_hours": 20,
            "tasks": [
                _task(1, "Social Media Audit",
                      "Analyze current profiles and competitor presence",
                      3, ["social_media", "strategy"], client=True),
                _task(2, "Content Strategy",
                      "Create monthly content calendar and posting schedule",
                      4, ["social_media", "content_creation"], depends=(1,), client=True),
                _task(3, "Profile Optimization",
                      "Optimize 2-3 social profiles with branding",
                      2, ["social_media", "branding"], depends=(2,)),
                _task(4, "Content Creation",
                      "Create 12-18 posts (graphics, captions, hashtags)",
                      8, ["graphic_design", "content_creation"], depends=(3,)),
                _task(5, "Publishing & Engagement",
                      "Schedule posts and engage with audience",
                      2, ["social_media"], depends=(4,)),
                _task(6, "Monthly Analytics Report",
                      "Report on reach, engagement, and growth",
                      1, ["social_media", "analytics"], depends=(5,), client=True),
            ],
            "milestones": [
                ("Strategy Approved", (1, 2)),
                ("Content Created", (4,)),
                ("Month Complete", (5, 6)),
            ],
        },
    },
    "ad-management": {
        "growth": {
            "display_name": "Ad Management - Growth",
            "estimated_duration": 30,
            "estimated_hours": 25,
            "tasks": [
                _task(1, "Campaign Strategy",
                      "Define goals, audience, budget allocation",
                      3, ["ppc", "strategy"], client=True),
                _task(2, "Account Setup & Tracking",
                      "Set up ad accounts, pixels, conversion tracking",
                      3, ["ppc", "analytics"], depends=(1,)),
                _task(3, "Creative Development",
                      "Create ad copy and visuals for campaigns",
                      5, ["ppc", "graphic_design"], depends=(2,)),
                _task(4, "Campaign Launch",
                      "Launch Meta Ads and Google PPC campaigns",
                      3, ["ppc"], depends=(3,), client=True),
                _task(5, "Ongoing Optimization",
                      "Daily monitoring and bid/targeting adjustments",
                      8, ["ppc", "analytics"], depends=(4,)),
                _task(6, "A/B Testing",
                      "Test ad variations for improved performance",
                      2, ["ppc"], depends=(5,)),
                _task(7, "Monthly Performance Report",
                      "Detailed report on ad spend, conversions, ROI",
                      1, ["ppc", "analytics"], depends=(5, 6), client=True),
            ],
            "milestones": [
                ("Campaign Strategy Approved", (1,)),
                ("Campaigns Launched", (4,)),
                ("First Month Complete", (7,)),
            ],
        },
    },
}


class TemplateCatalog:
    """ITemplateCatalog over a blueprint table (BLUEPRINTS by default)."""

    def __init__(
        self,
        default_tier: str = "growth",
        blueprints: dict[str, dict[str, dict[str, Any]]] | None = None,
    ) -> None:
        self._default_tier = default_tier.lower()
        self._blueprints = BLUEPRINTS if blueprints is None else blueprints

    def service_types(self) -> list[str]:
        return sorted(self._blueprints)

    def resolve_tier(self, service_type: str, tier: str | None) -> str | None:
        tiers = self._blueprints.get(service_type)
        if tiers is None:
            return None
        requested = (tier or self._default_tier).lower()
        if requested in tiers:
            return requested
        if self._default_tier in tiers:
            return self._default_tier
        # Service without the default tier: first declared tier
        return next(iter(tiers), None)

    def build_template(self, service_type: str, tier: str) -> WorkflowTemplateEntity:
        data = self._blueprints[service_type][tier]
        tasks = tuple(
            TaskBlueprint(
                title=t["title"],
                order=t["order"],
                estimated_hours=float(t["estimated_hours"]),
                description=t.get("description", ""),
                required_skills=frozenset(t.get("required_skills", ())),
                dependencies=frozenset(int(d) for d in t.get("dependencies", ())),
                visible_to_client=bool(t.get("visible_to_client", False)),
            )
            for t in data["tasks"]
        )
        milestones = tuple(
            Milestone(name=name, order=index, task_orders=tuple(orders))
            for index, (name, orders) in enumerate(data.get("milestones", ()), start=1)
        )
        return WorkflowTemplateEntity(
            id=generate_cuid(),
            name=f"{service_type}-{tier}",
            service_type=service_type,
            service_tier=tier,
            estimated_duration=int(data["estimated_duration"]),
            estimated_hours=float(data["estimated_hours"]),
            tasks=tasks,
            milestones=milestones,
            display_name=data.get("display_name"),
        )
