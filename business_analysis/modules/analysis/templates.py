"""Recommendation templates keyed by issue code.

Action strings may carry ``{name}``, ``{industry}`` and ``{city}``
placeholders, filled in from the business profile when rendered.
"""

from __future__ import annotations

from dataclasses import dataclass

from business_analysis.modules.analysis.issue_codes import IssueCategory, IssueCode


@dataclass(frozen=True)
class RecommendationTemplate:
    """Canned recommendation for one issue code."""

    type: str
    category: str
    priority: str
    title: str
    description: str
    impact: str
    effort: str
    timeframe: str
    specific_actions: tuple[str, ...] = ()


_PHOTOS = RecommendationTemplate(
    type=IssueCategory.LOCAL,
    category="photos",
    priority="medium",
    title="Add High-Quality Business Photos",
    description=(
        "Upload professional photos of your business, products, and services "
        "to attract customers."
    ),
    impact="medium",
    effort="low",
    timeframe="1-2 days",
    specific_actions=(
        "Take photos of your storefront, interior, and work areas",
        "Include photos of your products or services in action",
        "Add photos of your team and staff",
        "Use high-resolution images with good lighting",
        "Upload at least 5-10 photos to your Google My Business profile",
    ),
)

_HOURS = RecommendationTemplate(
    type=IssueCategory.LOCAL,
    category="information",
    priority="medium",
    title="Add Complete Business Hours",
    description="Provide accurate business hours so customers know when you're available.",
    impact="medium",
    effort="low",
    timeframe="1 day",
    specific_actions=(
        "Update your Google My Business profile with complete hours",
        "Include special hours for holidays",
        "Add hours to your website contact page",
        "Keep hours updated during seasonal changes",
        'Consider adding "24/7 emergency service" if applicable',
    ),
)

# A template only applies to issues of the same category as its ``type``;
# SEO_PHOTOS_MISSING and SEO_HOURS_MISSING therefore never borrow the local
# templates they are aliased to.
RECOMMENDATION_TEMPLATES: dict[IssueCode, RecommendationTemplate] = {
    # --- SEO ---
    IssueCode.SEO_WEBSITE_MISSING: RecommendationTemplate(
        type=IssueCategory.SEO,
        category="website",
        priority="critical",
        title="Create a Business Website",
        description=(
            "Having a website is essential for SEO and online visibility. Create a "
            "professional website with your business information, services, and "
            "contact details."
        ),
        impact="high",
        effort="high",
        timeframe="2-4 weeks",
        specific_actions=(
            "Choose a domain name that includes your business name",
            "Select a reliable web hosting provider",
            "Create pages for Home, About, Services, and Contact",
            "Include your business name, address, and phone number on every page",
            "Add a Google My Business link and social media profiles",
        ),
    ),
    IssueCode.TITLE_MISSING: RecommendationTemplate(
        type=IssueCategory.SEO,
        category="content",
        priority="high",
        title="Add Page Title Tags",
        description=(
            "Add descriptive title tags to all pages. Include your business name "
            "and primary keywords."
        ),
        impact="high",
        effort="low",
        timeframe="1-2 days",
        specific_actions=(
            'Add title tag like "{name} - {industry} in {city}"',
            "Keep titles between 30-60 characters",
            "Include location and primary service keywords",
            "Make each page title unique",
        ),
    ),
    IssueCode.META_DESCRIPTION_MISSING: RecommendationTemplate(
        type=IssueCategory.SEO,
        category="content",
        priority="high",
        title="Add Meta Descriptions",
        description=(
            "Add compelling meta descriptions to improve click-through rates from "
            "search results."
        ),
        impact="medium",
        effort="low",
        timeframe="1-2 days",
        specific_actions=(
            "Write 120-160 character descriptions for each page",
            "Include your location and primary services",
            'Add a call-to-action like "Call now" or "Get quote"',
            "Make descriptions unique and compelling",
        ),
    ),
    IssueCode.NOT_HTTPS: RecommendationTemplate(
        type=IssueCategory.SEO,
        category="technical",
        priority="high",
        title="Implement HTTPS Security",
        description=(
            "Switch to HTTPS to improve security and SEO rankings. Google "
            "prioritizes secure websites."
        ),
        impact="high",
        effort="medium",
        timeframe="1-3 days",
        specific_actions=(
            "Purchase and install an SSL certificate",
            "Update all internal links to use HTTPS",
            "Set up 301 redirects from HTTP to HTTPS",
            "Update Google My Business and social media profiles with HTTPS URL",
        ),
    ),
    IssueCode.STRUCTURED_DATA_MISSING: RecommendationTemplate(
        type=IssueCategory.SEO,
        category="technical",
        priority="medium",
        title="Add Schema Markup",
        description=(
            "Implement structured data to help search engines understand your "
            "business information."
        ),
        impact="medium",
        effort="medium",
        timeframe="3-5 days",
        specific_actions=(
            "Add LocalBusiness schema markup",
            "Include business name, address, phone, and hours",
            "Add review schema if you display reviews",
            "Use Google's Structured Data Testing Tool to validate",
        ),
    ),
    # --- UX ---
    IssueCode.UX_NO_WEBSITE: RecommendationTemplate(
        type=IssueCategory.UX,
        category="website",
        priority="critical",
        title="Create User-Friendly Website",
        description=(
            "Build a website focused on user experience with clear navigation and "
            "easy contact options."
        ),
        impact="high",
        effort="high",
        timeframe="2-4 weeks",
        specific_actions=(
            "Design a clean, mobile-responsive layout",
            "Add prominent contact buttons and phone numbers",
            "Include customer testimonials and reviews",
            "Create clear service descriptions and pricing",
            "Add online booking or inquiry forms",
        ),
    ),
    IssueCode.NO_CONTACT_FORMS: RecommendationTemplate(
        type=IssueCategory.UX,
        category="contact",
        priority="high",
        title="Add Contact Forms",
        description=(
            "Make it easy for customers to reach you by adding contact forms on "
            "key pages."
        ),
        impact="high",
        effort="low",
        timeframe="1-2 days",
        specific_actions=(
            "Add a contact form to your Contact page",
            "Include forms on service pages for specific inquiries",
            "Request only essential information (name, email, phone, message)",
            'Add a "Get Quote" or "Schedule Consultation" form',
            "Set up automatic email responses to form submissions",
        ),
    ),
    IssueCode.NO_CTA: RecommendationTemplate(
        type=IssueCategory.UX,
        category="conversion",
        priority="high",
        title="Add Clear Call-to-Action Buttons",
        description=(
            "Guide visitors to take action with prominent, clear call-to-action "
            "buttons."
        ),
        impact="high",
        effort="low",
        timeframe="1-2 days",
        specific_actions=(
            'Add "Call Now" buttons with your phone number',
            'Include "Get Quote" or "Schedule Appointment" buttons',
            "Use contrasting colors to make buttons stand out",
            "Place CTAs above the fold and on every page",
            'Use action-oriented text like "Book Now" or "Contact Us Today"',
        ),
    ),
    IssueCode.NOT_MOBILE_FRIENDLY: RecommendationTemplate(
        type=IssueCategory.UX,
        category="mobile",
        priority="high",
        title="Optimize for Mobile Devices",
        description="Ensure your website works perfectly on smartphones and tablets.",
        impact="high",
        effort="medium",
        timeframe="1-2 weeks",
        specific_actions=(
            "Implement responsive design that adapts to all screen sizes",
            "Make buttons and links easy to tap on mobile",
            "Optimize images for faster loading on mobile",
            "Use readable font sizes without zooming",
            "Test on multiple devices and browsers",
        ),
    ),
    IssueCode.NO_CHAT_WIDGET: RecommendationTemplate(
        type=IssueCategory.UX,
        category="customer_service",
        priority="medium",
        title="Add Live Chat Support",
        description=(
            "Provide instant customer support with a chat widget to capture more "
            "leads."
        ),
        impact="medium",
        effort="low",
        timeframe="1-2 days",
        specific_actions=(
            "Install a chat widget (like Intercom, Zendesk, or Tawk.to)",
            "Set up automated greetings and common questions",
            "Train staff to respond quickly to chat inquiries",
            "Set business hours for chat availability",
            "Use chat to qualify leads and schedule appointments",
        ),
    ),
    # --- Local listing ---
    IssueCode.NEEDS_MORE_REVIEWS: RecommendationTemplate(
        type=IssueCategory.LOCAL,
        category="reviews",
        priority="high",
        title="Increase Customer Reviews",
        description=(
            "Actively encourage satisfied customers to leave reviews on Google and "
            "other platforms."
        ),
        impact="high",
        effort="medium",
        timeframe="2-4 weeks",
        specific_actions=(
            "Ask satisfied customers to leave reviews after service completion",
            "Send follow-up emails with direct links to your Google review page",
            "Create review request cards to hand out to customers",
            "Train staff to mention reviews during customer interactions",
            "Offer small incentives for honest reviews (where permitted)",
        ),
    ),
    IssueCode.LOCAL_NEEDS_MORE_PHOTOS: _PHOTOS,
    IssueCode.SEO_PHOTOS_MISSING: _PHOTOS,
    IssueCode.LOCAL_HOURS_MISSING: _HOURS,
    IssueCode.SEO_HOURS_MISSING: _HOURS,
    IssueCode.LOW_AVERAGE_RATING: RecommendationTemplate(
        type=IssueCategory.LOCAL,
        category="reputation",
        priority="high",
        title="Improve Customer Satisfaction",
        description=(
            "Focus on improving service quality and addressing customer concerns "
            "to boost ratings."
        ),
        impact="high",
        effort="high",
        timeframe="1-3 months",
        specific_actions=(
            "Respond to all negative reviews professionally and promptly",
            "Identify common complaints and address root causes",
            "Implement quality control measures",
            "Train staff on customer service best practices",
            "Follow up with customers to ensure satisfaction",
        ),
    ),
}

GENERIC_TITLES: dict[IssueCategory, str] = {
    IssueCategory.SEO: "Fix SEO Issue",
    IssueCategory.UX: "Improve User Experience",
    IssueCategory.LOCAL: "Fix Local Listing Issue",
}


# ------------------------------------------------------------------
# Templates driven by raw analysis data rather than issues
# ------------------------------------------------------------------

PERFORMANCE_TEMPLATE = RecommendationTemplate(
    type="website",
    category="performance",
    priority="medium",
    title="Improve Website Performance",
    description="Optimize your website speed for better user experience and SEO.",
    impact="medium",
    effort="medium",
    timeframe="1-2 weeks",
    specific_actions=(
        "Compress and optimize images",
        "Enable browser caching",
        "Minify CSS and JavaScript files",
        "Use a content delivery network (CDN)",
        "Optimize server response times",
    ),
)

CONTENT_TEMPLATE = RecommendationTemplate(
    type="website",
    category="content",
    priority="medium",
    title="Add More Content",
    description=(
        "Expand your website content to provide more value to visitors and "
        "improve SEO."
    ),
    impact="medium",
    effort="medium",
    timeframe="1-2 weeks",
    specific_actions=(
        "Write detailed service descriptions",
        "Add frequently asked questions",
        "Create blog posts about your industry",
        "Include customer success stories",
        "Add location-specific content",
    ),
)

LOCAL_RANKINGS_TEMPLATE = RecommendationTemplate(
    type="serp",
    category="local_seo",
    priority="high",
    title="Improve Local Search Rankings",
    description=(
        "Your business is not appearing in local search results. Focus on local "
        "SEO optimization."
    ),
    impact="high",
    effort="high",
    timeframe="1-2 months",
    specific_actions=(
        "Optimize Google My Business profile completely",
        "Build local citations and directory listings",
        "Get reviews from local customers",
        "Create location-specific content on your website",
        "Build local backlinks from community websites",
    ),
)

CONCERN_ACTIONS: tuple[str, ...] = (
    "Respond to relevant reviews mentioning this issue",
    "Implement process improvements to address the concern",
    "Train staff on handling this specific issue",
    "Follow up with customers to ensure resolution",
)
