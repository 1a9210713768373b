"""Declarative definition of the six assessment wizard steps.

The catalog is static data. Everything the wizard needs to decide about a
question (visibility, option narrowing, completeness, ranking caps) is
declared here rather than coded in the controller.
"""

from dataclasses import dataclass, field
from enum import Enum


class QuestionType(str, Enum):
    SINGLE_SELECT = "single-select"
    MULTI_SELECT = "multi-select"
    RANKING = "ranking"
    SLIDER = "slider"
    TEXT = "text"
    EMAIL = "email"
    TEXTAREA = "textarea"


@dataclass(frozen=True)
class Option:
    value: str
    label: str
    description: str = ""
    # only shown when the answer to the question's `options_filtered_by` key matches
    industry: str | None = None


@dataclass(frozen=True)
class Tooltip:
    term: str
    explanation: str


@dataclass(frozen=True)
class Condition:
    """Visibility rule evaluated against the current answers."""

    key: str
    equals: str | None = None
    contains: str | None = None

    def is_met(self, answers: dict) -> bool:
        value = answers.get(self.key)
        if self.equals is not None:
            return value == self.equals
        if self.contains is not None:
            return isinstance(value, list) and self.contains in value
        return bool(value)


@dataclass(frozen=True)
class Question:
    key: str
    type: QuestionType
    text: str
    description: str = ""
    options: tuple[Option, ...] = ()
    required: bool = False
    placeholder: str = ""
    max_selection: int | None = None
    min: int | None = None
    max: int | None = None
    min_label: str = ""
    max_label: str = ""
    tooltips: tuple[Tooltip, ...] = ()
    visible_when: Condition | None = None
    options_filtered_by: str | None = None
    # optional, but counts towards step progress while visible
    counted: bool = False

    @property
    def is_multi_valued(self) -> bool:
        return self.type in (QuestionType.MULTI_SELECT, QuestionType.RANKING)

    def option_label(self, value: str) -> str:
        for option in self.options:
            if option.value == value:
                return option.label
        return value


@dataclass(frozen=True)
class Step:
    id: int
    title: str
    subtitle: str
    questions: tuple[Question, ...] = field(default_factory=tuple)


def _options(*pairs) -> tuple[Option, ...]:
    return tuple(Option(*pair) if isinstance(pair, tuple) else pair for pair in pairs)


STEPS: tuple[Step, ...] = (
    Step(
        id=1,
        title="Your Current Setup",
        subtitle="Let's understand your business context and existing tools",
        questions=(
            Question(
                key="company_size",
                type=QuestionType.SINGLE_SELECT,
                text="How many employees does your company have?",
                required=True,
                options=_options(
                    ("<10", "Less than 10"),
                    ("10-50", "10-50 employees"),
                    ("50-200", "50-200 employees"),
                    ("200-500", "200-500 employees"),
                    ("500+", "500+ employees"),
                ),
            ),
            Question(
                key="industry",
                type=QuestionType.SINGLE_SELECT,
                text="What industry are you in?",
                required=True,
                options=_options(
                    ("financial_services", "Financial Services"),
                    ("healthcare", "Healthcare"),
                    ("manufacturing", "Manufacturing"),
                    ("retail", "Retail / E-commerce"),
                    ("technology", "Technology / Software"),
                    ("professional_services", "Professional Services"),
                    ("education", "Education"),
                    ("nonprofit", "Non-profit"),
                    ("government", "Government"),
                    ("other", "Other"),
                ),
            ),
            Question(
                key="industry_other",
                type=QuestionType.TEXT,
                text="Please specify your industry:",
                placeholder="e.g., Real Estate, Hospitality, Transportation",
                required=True,
                visible_when=Condition("industry", equals="other"),
            ),
            Question(
                key="operational_areas",
                type=QuestionType.MULTI_SELECT,
                text="Which operational areas would you like tailored recommendations for?",
                description=(
                    "Select all that apply. This helps us provide specific insights for each area of your business."
                ),
                options_filtered_by="industry",
                options=_options(
                    Option("retail_banking", "Retail Banking", industry="financial_services"),
                    Option("commercial_banking", "Commercial Banking", industry="financial_services"),
                    Option("loans_lending", "Loans & Lending", industry="financial_services"),
                    Option("card_payments", "Card Payments & Processing", industry="financial_services"),
                    Option("wealth_management", "Wealth Management", industry="financial_services"),
                    Option("investment_banking", "Investment Banking", industry="financial_services"),
                    Option("compliance_risk", "Compliance & Risk Management", industry="financial_services"),
                    Option("mortgage", "Mortgage Services", industry="financial_services"),
                    Option("patient_care", "Patient Care & Treatment", industry="healthcare"),
                    Option("billing_revenue", "Billing & Revenue Cycle", industry="healthcare"),
                    Option("clinical_ops", "Clinical Operations", industry="healthcare"),
                    Option("lab_diagnostics", "Lab & Diagnostics", industry="healthcare"),
                    Option("pharmacy", "Pharmacy Services", industry="healthcare"),
                    Option("medical_records", "Medical Records & EHR", industry="healthcare"),
                    Option("scheduling", "Patient Scheduling", industry="healthcare"),
                    Option("production", "Production & Assembly", industry="manufacturing"),
                    Option("supply_chain", "Supply Chain Management", industry="manufacturing"),
                    Option("quality_assurance", "Quality Assurance", industry="manufacturing"),
                    Option("maintenance", "Equipment Maintenance", industry="manufacturing"),
                    Option("logistics", "Logistics & Distribution", industry="manufacturing"),
                    Option("procurement", "Procurement & Sourcing", industry="manufacturing"),
                    Option("planning", "Production Planning", industry="manufacturing"),
                    Option("storefront", "Storefront Operations", industry="retail"),
                    Option("ecommerce", "E-commerce Platform", industry="retail"),
                    Option("inventory", "Inventory Management", industry="retail"),
                    Option("customer_service", "Customer Service", industry="retail"),
                    Option("marketing_retail", "Marketing & Promotions", industry="retail"),
                    Option("merchandising", "Merchandising", industry="retail"),
                    Option("fulfillment", "Order Fulfillment", industry="retail"),
                    Option("product_dev", "Product Development", industry="technology"),
                    Option("engineering", "Engineering & R&D", industry="technology"),
                    Option("customer_success", "Customer Success", industry="technology"),
                    Option("devops", "DevOps & Infrastructure", industry="technology"),
                    Option("sales_tech", "Sales & Business Development", industry="technology"),
                    Option("support", "Technical Support", industry="technology"),
                    Option("client_services", "Client Services & Delivery", industry="professional_services"),
                    Option("consulting", "Consulting & Advisory", industry="professional_services"),
                    Option("project_mgmt", "Project Management", industry="professional_services"),
                    Option("accounting", "Accounting & Finance", industry="professional_services"),
                    Option("legal", "Legal Services", industry="professional_services"),
                    Option("admissions", "Admissions & Enrollment", industry="education"),
                    Option("student_services", "Student Services", industry="education"),
                    Option("academic_programs", "Academic Programs", industry="education"),
                    Option("facilities", "Facilities Management", industry="education"),
                    Option("research", "Research & Innovation", industry="education"),
                    Option("fundraising", "Fundraising & Development", industry="nonprofit"),
                    Option("program_delivery", "Program Delivery", industry="nonprofit"),
                    Option("volunteer_mgmt", "Volunteer Management", industry="nonprofit"),
                    Option("donor_relations", "Donor Relations", industry="nonprofit"),
                    Option("advocacy", "Advocacy & Outreach", industry="nonprofit"),
                    Option("public_services", "Public Services", industry="government"),
                    Option("permits_licensing", "Permits & Licensing", industry="government"),
                    Option("regulatory", "Regulatory & Compliance", industry="government"),
                    Option("citizen_engagement", "Citizen Engagement", industry="government"),
                    Option("infrastructure", "Infrastructure Management", industry="government"),
                    # cross-industry, always shown
                    ("sales", "Sales", "Sales operations and processes"),
                    ("marketing", "Marketing", "Marketing and demand generation"),
                    ("operations", "Operations", "General business operations"),
                    ("finance", "Finance & Accounting", "Financial operations and reporting"),
                    ("hr", "Human Resources", "HR and people operations"),
                    ("it", "IT / Technology", "Technology and infrastructure"),
                    ("customer_service_gen", "Customer Service", "Customer support and service"),
                ),
            ),
            Question(
                key="user_role",
                type=QuestionType.SINGLE_SELECT,
                text="What is your role?",
                required=True,
                options=_options(
                    ("business_leader", "Business Leader / Executive"),
                    ("operations", "Operations / Process Manager"),
                    ("it_technical", "IT / Technical Lead"),
                    ("consultant", "Consultant / Advisor"),
                    ("other", "Other"),
                ),
            ),
            Question(
                key="technical_capability",
                type=QuestionType.SINGLE_SELECT,
                text="What technical resources do you have?",
                required=True,
                options=_options(
                    ("dedicated_team", "Dedicated development team", "We have in-house developers"),
                    ("1-2_people", "1-2 technical people", "Small IT or technical support"),
                    (
                        "willing_to_hire",
                        "No team yet, but willing to hire/contract",
                        "Open to bringing in technical help",
                    ),
                    ("citizen_only", "Need citizen-friendly solutions", "Business users only, no developers"),
                ),
                tooltips=(
                    Tooltip(
                        "citizen-friendly",
                        "No-code or low-code tools that business users can use without programming skills",
                    ),
                ),
            ),
            Question(
                key="team_comfort_level",
                type=QuestionType.MULTI_SELECT,
                text="What describes your team's technical comfort level?",
                description="Select all that apply",
                options=_options(
                    ("excel_power_users", "Excel power users (formulas, pivots, macros)"),
                    ("no_code_learners", "Can learn no-code tools with training"),
                    ("some_coding", "Some coding knowledge (SQL, Python, etc.)"),
                    ("technical_team", "Technical team ready for advanced platforms"),
                ),
            ),
            Question(
                key="existing_microsoft",
                type=QuestionType.MULTI_SELECT,
                text="Which Microsoft 365 tools do you currently use?",
                description="Select all that apply (skip if you don't use Microsoft 365)",
                options=_options(
                    ("excel", "Excel"),
                    ("power_bi", "Power BI"),
                    ("power_automate", "Power Automate"),
                    ("power_apps", "Power Apps"),
                    ("sharepoint", "SharePoint"),
                    ("teams", "Teams"),
                    ("onedrive", "OneDrive"),
                ),
            ),
            Question(
                key="existing_google",
                type=QuestionType.MULTI_SELECT,
                text="Which Google Workspace tools do you use?",
                description="Select all that apply (skip if you don't use Google Workspace)",
                options=_options(
                    ("sheets", "Google Sheets"),
                    ("docs", "Google Docs"),
                    ("drive", "Google Drive"),
                    ("forms", "Google Forms"),
                    ("apps_script", "Apps Script"),
                ),
            ),
            Question(
                key="existing_other_tools",
                type=QuestionType.MULTI_SELECT,
                text="What other tools does your company use?",
                description="Select all that apply",
                options=_options(
                    ("salesforce", "Salesforce / CRM"),
                    ("slack", "Slack"),
                    ("quickbooks", "QuickBooks / Accounting"),
                    ("project_mgmt", "Project management (Asana, Monday, Jira, etc.)"),
                    ("data_viz", "Data visualization (Tableau, Looker, etc.)"),
                    ("rpa", "RPA (UiPath, Blue Prism, Automation Anywhere)"),
                    ("alteryx", "Alteryx or similar data prep tools"),
                    ("cognigy", "Cognigy (AI chatbot platform)"),
                    ("outsystems", "OutSystems (low-code application platform)"),
                    ("none", "None of these"),
                ),
            ),
            Question(
                key="erp_system",
                type=QuestionType.MULTI_SELECT,
                text="What ERP or core business systems do you use? (Select all that apply)",
                description="Enterprise Resource Planning and industry-specific systems",
                options_filtered_by="industry",
                options=_options(
                    ("sap", "SAP"),
                    ("oracle", "Oracle ERP Cloud / NetSuite"),
                    ("microsoft_dynamics", "Microsoft Dynamics 365"),
                    ("workday", "Workday"),
                    ("infor", "Infor"),
                    ("epicor", "Epicor"),
                    ("ifs", "IFS"),
                    ("sage", "Sage"),
                    ("acumatica", "Acumatica"),
                    Option("epic_ehr", "Epic (Healthcare EHR)", industry="healthcare"),
                    Option("cerner", "Cerner (Healthcare)", industry="healthcare"),
                    Option("meditech", "Meditech (Healthcare)", industry="healthcare"),
                    Option("athenahealth", "Athenahealth (Healthcare)", industry="healthcare"),
                    Option("dexterra", "Dexterra (Manufacturing)", industry="manufacturing"),
                    Option("plex", "Plex (Manufacturing)", industry="manufacturing"),
                    Option("iqms", "IQMS (Manufacturing)", industry="manufacturing"),
                    Option("shopify_plus", "Shopify Plus (Retail)", industry="retail"),
                    Option("netsuite_retail", "NetSuite for Retail", industry="retail"),
                    Option("lightspeed", "Lightspeed (Retail POS)", industry="retail"),
                    Option("square", "Square (Retail)", industry="retail"),
                    Option("fiserv", "Fiserv (Financial Services)", industry="financial_services"),
                    Option("temenos", "Temenos (Banking)", industry="financial_services"),
                    Option("finastra", "Finastra (Financial Services)", industry="financial_services"),
                    Option("blackbaud", "Blackbaud (Non-profit)", industry="nonprofit"),
                    Option("salesforce_nonprofit", "Salesforce Nonprofit Cloud", industry="nonprofit"),
                    Option("canvas", "Canvas (Education LMS)", industry="education"),
                    Option("blackboard", "Blackboard (Education)", industry="education"),
                    Option("ellucian", "Ellucian (Higher Education)", industry="education"),
                    ("custom_erp", "Custom/Legacy ERP system"),
                    ("none", "No ERP system"),
                    ("other", "Other (specify below)"),
                ),
            ),
            Question(
                key="erp_system_other",
                type=QuestionType.TEXT,
                text="Please specify your other systems:",
                placeholder="e.g., Custom CRM, Legacy inventory system",
                counted=True,
                visible_when=Condition("erp_system", contains="other"),
            ),
        ),
    ),
    Step(
        id=2,
        title="Pain Points & Opportunities",
        subtitle="Tell us what's slowing your team down",
        questions=(
            Question(
                key="pain_points",
                type=QuestionType.MULTI_SELECT,
                text="What challenges is your business facing?",
                description="Select all that apply",
                options=_options(
                    ("data_scattered", "Data lives in too many places", "Spreadsheets, emails, people's heads"),
                    ("manual_tasks", "Too many manual, repetitive tasks", "Data entry, copy-paste, reporting"),
                    ("slow_decisions", "Decisions take too long", "Waiting for reports, can't find data"),
                    ("email_meetings", "Too much time in email/meetings", "Communication overhead"),
                    ("collaboration_messy", "Team collaboration is messy", "Version control, tracking changes"),
                    ("onboarding_slow", "Onboarding new people takes forever", "Tribal knowledge, no documentation"),
                    ("no_kpi_tracking", "Can't easily track KPIs", "No visibility into performance"),
                    ("cant_find_info", "Hard to find documents/information", "Search doesn't work"),
                    ("using_workarounds", "Using workarounds constantly", "Systems don't do what we need"),
                ),
            ),
            Question(
                key="top_frustration",
                type=QuestionType.RANKING,
                text="Rank your top 3 frustrations",
                description="Select up to 3 in order of priority - click to select, #1 is your biggest pain point",
                max_selection=3,
                options=_options(
                    ("data_scattered", "Data lives in too many places"),
                    ("manual_tasks", "Too many manual, repetitive tasks"),
                    ("slow_decisions", "Decisions take too long"),
                    ("email_meetings", "Too much time in email/meetings"),
                    ("collaboration_messy", "Team collaboration is messy"),
                    ("onboarding_slow", "Onboarding new people takes forever"),
                    ("no_kpi_tracking", "Can't easily track KPIs"),
                    ("cant_find_info", "Hard to find documents/information"),
                    ("using_workarounds", "Using workarounds constantly"),
                ),
            ),
            Question(
                key="specific_automation_needs",
                type=QuestionType.MULTI_SELECT,
                text="Which processes could benefit from automation?",
                description="Select all that apply",
                options=_options(
                    ("invoice_processing", "Invoice/document processing"),
                    ("data_entry", "Data entry between systems"),
                    ("report_generation", "Report generation"),
                    ("email_notifications", "Email notifications and reminders"),
                    ("approval_workflows", "Approval workflows"),
                    ("data_validation", "Data validation and quality checks"),
                    ("customer_onboarding", "Customer onboarding"),
                    ("inventory_tracking", "Inventory or asset tracking"),
                ),
            ),
            Question(
                key="ai_opportunities",
                type=QuestionType.MULTI_SELECT,
                text="Where could AI help your business?",
                description="Select all that apply",
                options=_options(
                    ("customer_support", "Customer service/support"),
                    ("content_creation", "Content creation (writing, marketing)"),
                    ("document_analysis", "Document analysis/extraction"),
                    ("predictive_analytics", "Predictive analytics"),
                    ("natural_language_search", "Natural language search"),
                    ("data_insights", "Automated data insights"),
                    ("not_sure", "Not sure yet / exploring"),
                ),
            ),
            Question(
                key="data_pain_points_detail",
                type=QuestionType.TEXTAREA,
                text="Data & Reporting Pain Points (Optional)",
                description="Tell us more about specific data challenges you face",
            ),
            Question(
                key="automation_pain_points_detail",
                type=QuestionType.TEXTAREA,
                text="Automation & Process Pain Points (Optional)",
                description="Describe specific manual processes that are slowing you down",
            ),
            Question(
                key="ai_pain_points_detail",
                type=QuestionType.TEXTAREA,
                text="AI & Technology Pain Points (Optional)",
                description="Share any specific areas where you think AI or advanced technology could help",
            ),
            Question(
                key="collaboration_pain_points_detail",
                type=QuestionType.TEXTAREA,
                text="Team Collaboration & Communication Pain Points (Optional)",
                description="Tell us about collaboration challenges your team faces",
            ),
        ),
    ),
    Step(
        id=3,
        title="Digital Maturity Assessment",
        subtitle="Quick self-assessment of your current state",
        questions=(
            Question(
                key="data_maturity",
                type=QuestionType.SLIDER,
                text="Data Accessibility & Quality",
                min=1,
                max=5,
                min_label="Excel hell, data everywhere",
                max_label="Real-time dashboards, single source of truth",
                required=True,
            ),
            Question(
                key="automation_maturity",
                type=QuestionType.SLIDER,
                text="Process Automation",
                min=1,
                max=5,
                min_label="Everything is manual",
                max_label="Most tasks are automated",
                required=True,
            ),
            Question(
                key="collaboration_maturity",
                type=QuestionType.SLIDER,
                text="Team Collaboration",
                min=1,
                max=5,
                min_label="Email attachments and confusion",
                max_label="Real-time shared systems",
                required=True,
            ),
            Question(
                key="documentation_maturity",
                type=QuestionType.SLIDER,
                text="Process Documentation",
                min=1,
                max=5,
                min_label="Tribal knowledge only",
                max_label="Clear, documented workflows",
                required=True,
            ),
            Question(
                key="ux_maturity",
                type=QuestionType.SLIDER,
                text="User Experience & Design",
                min=1,
                max=5,
                min_label="No UX focus, clunky interfaces",
                max_label="User-centered design, intuitive tools",
                required=True,
            ),
            Question(
                key="change_readiness",
                type=QuestionType.SINGLE_SELECT,
                text="How receptive is your team to new tools/processes?",
                required=True,
                options=_options(
                    ("eager", "Eager to try new things", "Team is excited about innovation"),
                    ("open", "Generally open with proper training", "Willing to learn with support"),
                    ("hesitant", "Hesitant, prefer status quo", "Need strong business case"),
                    ("resistant", "High resistance to change", "Need careful change management"),
                ),
            ),
            Question(
                key="champions_identified",
                type=QuestionType.MULTI_SELECT,
                text="Who will champion digital transformation?",
                description="Select all that apply",
                options=_options(
                    ("executive", "Executive sponsor identified"),
                    ("operations", "Operations/business lead identified"),
                    ("it", "IT/technical lead identified"),
                    ("none", "No champion yet (need help identifying)"),
                ),
            ),
            Question(
                key="training_preference",
                type=QuestionType.MULTI_SELECT,
                text="What training approaches work best for your team?",
                description="Select all that apply",
                required=True,
                options=_options(
                    ("self_service", "Self-service (documentation, videos)"),
                    ("formal_training", "Formal training sessions"),
                    ("hands_on", "Hands-on workshops"),
                    ("consultants", "External consultants"),
                ),
            ),
        ),
    ),
    Step(
        id=4,
        title="User Experience & Design",
        subtitle="Let's assess your UX maturity and design capabilities",
        questions=(
            Question(
                key="current_design_approach",
                type=QuestionType.SINGLE_SELECT,
                text="How does your organization currently approach UX design?",
                required=True,
                options=_options(
                    ("no_ux_process", "No formal UX process", "Design happens ad-hoc or not at all"),
                    ("developer_driven", "Developer-driven design", "Developers make design decisions"),
                    ("stakeholder_feedback", "Based on stakeholder feedback", "Design by committee"),
                    ("basic_ux", "Basic UX principles applied", "Some consideration for user needs"),
                    ("dedicated_designer", "Have dedicated UX/UI designer(s)", "Professional design resources"),
                    ("ux_research_team", "UX research & design team", "Formal UX practice with research"),
                ),
            ),
            Question(
                key="user_research_frequency",
                type=QuestionType.SINGLE_SELECT,
                text="How often do you conduct user research?",
                description="User interviews, surveys, usability testing, etc.",
                required=True,
                options=_options(
                    ("never", "Never / Rarely"),
                    ("once_year", "Once or twice a year"),
                    ("quarterly", "Quarterly"),
                    ("monthly", "Monthly"),
                    ("ongoing", "Ongoing / Continuous research"),
                ),
            ),
            Question(
                key="design_tools",
                type=QuestionType.MULTI_SELECT,
                text="What design tools does your team use?",
                description="Select all that apply",
                options=_options(
                    ("figma", "Figma"),
                    ("sketch", "Sketch"),
                    ("adobe_xd", "Adobe XD"),
                    ("canva", "Canva"),
                    ("powerpoint", "PowerPoint / Google Slides"),
                    ("miro", "Miro / FigJam / Whiteboarding tools"),
                    ("none", "No design tools"),
                ),
            ),
            Question(
                key="design_system",
                type=QuestionType.SINGLE_SELECT,
                text="Do you have a design system or component library?",
                required=True,
                options=_options(
                    ("no_system", "No, we don't have one"),
                    ("informal", "Informal guidelines", "Inconsistent patterns across products"),
                    ("basic_brand", "Basic brand guidelines", "Colors, logos, fonts"),
                    ("developing", "Currently developing one"),
                    ("established", "Established design system", "Documented components and patterns"),
                    ("mature", "Mature system with governance", "Living system with regular updates"),
                ),
                tooltips=(
                    Tooltip(
                        "design system",
                        "A collection of reusable UI components, patterns, and guidelines that ensure "
                        "consistency across all digital products",
                    ),
                ),
            ),
            Question(
                key="mobile_strategy",
                type=QuestionType.SINGLE_SELECT,
                text="What is your mobile strategy?",
                required=True,
                options=_options(
                    ("no_mobile", "No mobile presence"),
                    ("mobile_web_only", "Mobile-responsive website only"),
                    ("web_app", "Progressive web app (PWA)"),
                    ("native_app", "Native mobile apps (iOS/Android)"),
                    ("hybrid_app", "Hybrid mobile app (React Native, Flutter)"),
                    ("not_needed", "Not needed for our business"),
                ),
                tooltips=(
                    Tooltip(
                        "Progressive web app",
                        "A website that behaves like a native app, works offline, and can be installed on "
                        "mobile devices",
                    ),
                ),
            ),
            Question(
                key="accessibility_maturity",
                type=QuestionType.SINGLE_SELECT,
                text="How do you handle digital accessibility (WCAG compliance)?",
                required=True,
                options=_options(
                    ("not_considered", "Not currently considered"),
                    ("aware_not_implemented", "Aware but not implemented"),
                    ("basic_compliance", "Basic compliance efforts", "Some WCAG A level compliance"),
                    ("wcag_aa", "WCAG AA compliant", "Meet standard accessibility requirements"),
                    ("wcag_aaa", "WCAG AAA compliant", "Enhanced accessibility"),
                    ("accessibility_first", "Accessibility-first approach", "Built into design process"),
                ),
                tooltips=(
                    Tooltip(
                        "WCAG",
                        "Web Content Accessibility Guidelines - international standards for making digital "
                        "content accessible to people with disabilities",
                    ),
                ),
            ),
            Question(
                key="ux_metrics",
                type=QuestionType.MULTI_SELECT,
                text="What UX metrics do you track?",
                description="Select all that apply",
                options=_options(
                    ("none", "We don't track UX metrics"),
                    ("google_analytics", "Google Analytics / Web analytics"),
                    ("heatmaps", "Heatmaps / Session recordings"),
                    ("nps", "Net Promoter Score (NPS)"),
                    ("csat", "Customer Satisfaction Score (CSAT)"),
                    ("task_completion", "Task completion rates"),
                    ("time_on_task", "Time on task"),
                    ("error_rates", "Error rates / Failed interactions"),
                    ("sus", "System Usability Scale (SUS)"),
                ),
            ),
            Question(
                key="ux_challenges",
                type=QuestionType.MULTI_SELECT,
                text="What UX challenges does your organization face?",
                description="Select all that apply",
                options=_options(
                    ("inconsistent_ui", "Inconsistent UI across products"),
                    ("poor_feedback", "User complaints about usability"),
                    ("low_adoption", "Low adoption of new features"),
                    ("high_support", 'High support ticket volume for "how to" questions'),
                    ("slow_design", "Slow design process / bottleneck"),
                    ("design_dev_disconnect", "Disconnect between design and development"),
                    ("no_mobile_optimized", "Not optimized for mobile"),
                    ("accessibility_issues", "Accessibility issues"),
                    ("legacy_ui", "Outdated/legacy UI that needs modernization"),
                ),
            ),
            Question(
                key="ux_priorities",
                type=QuestionType.RANKING,
                text="Rank your top 3 UX priorities",
                description="Select up to 3 in order of priority",
                max_selection=3,
                options=_options(
                    ("improve_existing", "Improve existing product UX"),
                    ("design_system", "Build design system"),
                    ("user_research", "Establish user research practice"),
                    ("accessibility", "Improve accessibility"),
                    ("mobile_experience", "Better mobile experience"),
                    ("faster_design", "Speed up design process"),
                    ("hire_designers", "Hire/grow design team"),
                    ("design_ops", "Improve design operations"),
                ),
            ),
            Question(
                key="ux_detail",
                type=QuestionType.TEXTAREA,
                text="UX & Design Pain Points (Optional)",
                description="Share any specific UX challenges or opportunities",
            ),
        ),
    ),
    Step(
        id=5,
        title="Goals & Constraints",
        subtitle="Help us understand your transformation priorities and timeline",
        questions=(
            Question(
                key="primary_goal",
                type=QuestionType.RANKING,
                text="Rank your top 3 transformation goals",
                description="Select up to 3 in order of priority",
                max_selection=3,
                options=_options(
                    ("save_time", "Save time on manual tasks"),
                    ("improve_decisions", "Make faster, better decisions"),
                    ("scale_operations", "Scale operations without hiring more people"),
                    ("enhance_customer", "Enhance customer experience"),
                    ("reduce_errors", "Reduce errors and rework"),
                    ("unlock_insights", "Unlock insights from data"),
                    ("modernize_tech", "Modernize technology stack"),
                    ("competitive_advantage", "Gain competitive advantage"),
                ),
            ),
            Question(
                key="biggest_constraint",
                type=QuestionType.RANKING,
                text="What are your biggest constraints?",
                description="Rank your top 3 constraints",
                max_selection=3,
                options=_options(
                    ("budget", "Limited budget"),
                    ("time", "Limited time / too busy"),
                    ("technical_skills", "Lack of technical skills"),
                    ("resistance", "Resistance to change"),
                    ("unclear_where_start", "Unclear where to start"),
                    ("legacy_systems", "Legacy systems / technical debt"),
                    ("data_quality", "Poor data quality"),
                    ("leadership_buy_in", "Lack of leadership buy-in"),
                ),
            ),
            Question(
                key="timeline",
                type=QuestionType.SINGLE_SELECT,
                text="What is your transformation timeline?",
                required=True,
                options=_options(
                    ("30_days", "ASAP (within 30 days)", "Urgent need for improvement"),
                    ("90_days", "This quarter (90 days)", "Reasonable timeline"),
                    ("1_year", "This year", "Long-term planning"),
                    ("exploring", "No rush, just exploring", "Research phase"),
                ),
            ),
            Question(
                key="transformation_approach",
                type=QuestionType.SINGLE_SELECT,
                text="What approach do you prefer?",
                required=True,
                options=_options(
                    ("citizen_focus", "Empower business users", "Citizen development focus"),
                    ("hybrid", "Balanced approach", "Citizen development + IT collaboration"),
                    ("technical_excellence", "Technical excellence", "Proper development, scalable"),
                    ("show_options", "Not sure, show me options", "Open to recommendations"),
                ),
                tooltips=(
                    Tooltip(
                        "Citizen development",
                        "Empowering non-technical business users to create applications and automate processes "
                        "using no-code/low-code platforms, without relying on IT developers",
                    ),
                ),
            ),
        ),
    ),
    Step(
        id=6,
        title="Get Your Results",
        subtitle="Optional: receive your personalized roadmap via email",
        questions=(
            Question(key="contact_name", type=QuestionType.TEXT, text="Your name", placeholder="John Doe"),
            Question(
                key="email",
                type=QuestionType.EMAIL,
                text="Email address",
                description="We'll send your personalized roadmap here",
                placeholder="john@company.com",
            ),
            Question(key="company_name", type=QuestionType.TEXT, text="Company name", placeholder="Acme Corp"),
            Question(
                key="wants_consultation",
                type=QuestionType.SINGLE_SELECT,
                text="Would you like to discuss implementation support?",
                options=_options(
                    ("yes", "Yes, I'd like to discuss implementation"),
                    ("no", "No, just the assessment please"),
                    ("maybe", "Maybe later"),
                ),
            ),
        ),
    ),
)

CHANGE_READINESS_SCORES = {"eager": 5, "open": 4, "hesitant": 2}

_QUESTIONS_BY_KEY = {question.key: (step, question) for step in STEPS for question in step.questions}


def total_steps() -> int:
    return len(STEPS)


def total_questions() -> int:
    return len(_QUESTIONS_BY_KEY)


def get_step(step_id: int) -> Step:
    for step in STEPS:
        if step.id == step_id:
            return step
    raise KeyError(f"Unknown step {step_id}")


def get_question(question_key: str) -> Question | None:
    entry = _QUESTIONS_BY_KEY.get(question_key)
    return entry[1] if entry else None


def step_for_question(question_key: str) -> int | None:
    entry = _QUESTIONS_BY_KEY.get(question_key)
    return entry[0].id if entry else None


def change_readiness_score(value: str | None) -> int:
    return CHANGE_READINESS_SCORES.get(value or "", 1)
