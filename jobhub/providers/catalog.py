"""Provider catalog: one declarative entry per upstream job source.

French boards have no public endpoint and are configured through the
environment or the settings store. Public boards ship a default endpoint.
Everything not listed as a JSON source is a webhook partner.
"""

from typing import Any

from jobhub.core.schemas import ProviderContext, ProviderJob, ProviderPagination
from jobhub.providers.factory import ItemMapper, JsonProviderDefinition, QueryBuilder
from jobhub.providers.fields import FieldMap, build_provider_job, read_value, string_from

JOB_PROVIDER_IDS: tuple[str, ...] = (
    "france-travail",
    "apec",
    "meteojob",
    "hellowork",
    "welcometothejungle",
    "jobteaser",
    "chooseyourboss",
    "monster-fr",
    "indeed-fr",
    "talent-io",
    "arbeitnow",
    "jobicy",
    "remoteok",
    "thehub",
    "weworkremotely",
    "hackernews-jobs",
    "headhunter",
    "torre",
    "zippia",
    "themuse",
    "indeed-us",
    "indeed-uk",
    "indeed-de",
    "indeed-es",
    "indeed-it",
    "indeed-nl",
    "glassdoor-fr",
    "glassdoor-uk",
    "glassdoor-de",
    "glassdoor-us",
    "linkedin-fr",
    "linkedin-de",
    "linkedin-es",
    "linkedin-uk",
    "stepstone-de",
    "stepstone-nl",
    "stepstone-be",
    "reed-uk",
    "totaljobs-uk",
    "jobserve-uk",
    "irishjobs-ie",
    "seek-au",
    "seek-nz",
    "jobstreet-sg",
    "jobstreet-my",
    "jobstreet-ph",
    "jobstreet-id",
    "jobstreet-vn",
    "infojobs-es",
    "infojobs-it",
    "catho-br",
    "gupy-br",
    "bumeran-ar",
    "bumeran-pe",
    "computrabajo-mx",
    "computrabajo-co",
    "elempleo-co",
    "workana-latam",
    "pracuj-pl",
    "praca-sk",
    "jobs-ch",
    "jobup-ch",
    "eures-eu",
    "adzuna-uk",
    "adzuna-fr",
    "adzuna-au",
    "adzuna-ca",
    "adzuna-us",
    "wearedevelopers-de",
    "stackshare-us",
)


def _mapper(fields: FieldMap) -> ItemMapper:
    def map_item(record: dict[str, Any]) -> ProviderJob | None:
        return build_provider_job(record, fields)

    return map_item


def _limit_query(key: str, cap: int | None = None) -> QueryBuilder:
    def build(context: ProviderContext) -> dict[str, int | None]:
        if context.limit is None:
            return {}
        return {key: min(context.limit, cap) if cap else context.limit}

    return build


def _page_query(page_key: str = "page", limit_key: str | None = None) -> QueryBuilder:
    def build(context: ProviderContext) -> dict[str, int | None]:
        query: dict[str, int | None] = {page_key: context.page}
        if limit_key:
            query[limit_key] = context.limit
        return query

    return build


# ---------------------------------------------------------------------------
# French boards (environment-configured)
# ---------------------------------------------------------------------------

FRENCH_DEFINITIONS: list[JsonProviderDefinition] = [
    JsonProviderDefinition(
        id="france-travail",
        label="France Travail (ex Pôle emploi)",
        language="fr",
        default_category="engineering",
        items_path=("resultats",),
        query={"range": "0-149"},
        map_item=_mapper(FieldMap(
            external_id=("id", "offerId"),
            title=("intitule", "title"),
            company=("entreprise.nom", "company", "organisation"),
            location=("lieuTravail.libelle", "location", "city"),
            description=("description", "descriptif", "texte"),
            category=("romeLibelle", "domain", "category"),
            tags=("competences", "skills", "tags"),
            remote=("teletravail.libelle", "remote"),
            salary_min=("salaire.min", "salaryMin"),
            salary_max=("salaire.max", "salaryMax"),
            published_at=("dateActualisation", "publishedAt"),
            external_url=("origineOffre.urlOrigine", "url"),
        )),
    ),
    JsonProviderDefinition(
        id="apec",
        label="APEC",
        language="fr",
        default_category="operations",
        items_path=("offers",),
        map_item=_mapper(FieldMap(
            external_id=("offerId", "id"),
            title=("title", "position"),
            company=("companyName", "employer"),
            location=("location", "city"),
            description=("description", "body"),
            category=("function", "category"),
            tags=("skills", "keywords"),
            remote=("isRemote",),
            salary_min=("salaryMin", "minSalary"),
            salary_max=("salaryMax", "maxSalary"),
            published_at=("publicationDate",),
            external_url=("url", "offerUrl"),
        )),
    ),
    JsonProviderDefinition(
        id="meteojob",
        label="Meteojob",
        language="fr",
        default_category="marketing",
        items_path=("data", "jobs"),
        map_item=_mapper(FieldMap(
            external_id=("jobId", "id"),
            title=("title",),
            company=("company",),
            location=("city", "location"),
            description=("description", "mission"),
            category=("category", "contract"),
            tags=("skills", "tags"),
            remote=("remote",),
            salary_min=("salaryMin",),
            salary_max=("salaryMax",),
            published_at=("publishedAt",),
            external_url=("url",),
        )),
    ),
    JsonProviderDefinition(
        id="hellowork",
        label="HelloWork / RegionsJob",
        language="fr",
        default_category="engineering",
        items_path=("jobs",),
        map_item=_mapper(FieldMap(
            external_id=("reference", "id"),
            title=("title",),
            company=("companyName",),
            location=("city", "location"),
            description=("description",),
            category=("vertical", "category"),
            tags=("skills", "technologies"),
            remote=("isRemote",),
            salary_min=("salaryMin",),
            salary_max=("salaryMax",),
            published_at=("publishedAt",),
            external_url=("url",),
        )),
    ),
    JsonProviderDefinition(
        id="welcometothejungle",
        label="Welcome to the Jungle",
        language="fr",
        default_category="product",
        items_path=("offers",),
        map_item=_mapper(FieldMap(
            external_id=("id", "slug"),
            title=("title",),
            company=("company", "organization"),
            location=("office", "city"),
            description=("description",),
            category=("team", "category"),
            tags=("skills", "tags", "stack"),
            remote=("remote",),
            salary_min=("salaryMin",),
            salary_max=("salaryMax",),
            published_at=("publishedAt",),
            external_url=("url",),
        )),
    ),
    JsonProviderDefinition(
        id="jobteaser",
        label="JobTeaser",
        language="fr",
        default_category="marketing",
        items_path=("results",),
        map_item=_mapper(FieldMap(
            external_id=("id", "offerId"),
            title=("title",),
            company=("companyName", "school"),
            location=("city", "location"),
            description=("description",),
            category=("category", "industry"),
            tags=("skills", "keywords"),
            remote=("remote",),
            salary_min=("salaryMin",),
            salary_max=("salaryMax",),
            published_at=("publishedAt",),
            external_url=("url",),
        )),
    ),
    JsonProviderDefinition(
        id="chooseyourboss",
        label="ChooseYourBoss",
        language="fr",
        default_category="engineering",
        items_path=("jobs",),
        map_item=_mapper(FieldMap(
            external_id=("id", "slug"),
            title=("title",),
            company=("company",),
            location=("location", "city"),
            description=("description", "missions"),
            category=("stack", "category"),
            tags=("stack", "skills"),
            remote=("remote",),
            salary_min=("salaryMin", "minSalary"),
            salary_max=("salaryMax", "maxSalary"),
            published_at=("publishedAt",),
            external_url=("url",),
        )),
    ),
    JsonProviderDefinition(
        id="monster-fr",
        label="Monster France",
        language="fr",
        default_category="operations",
        items_path=("jobList",),
        map_item=_mapper(FieldMap(
            external_id=("jobId", "id"),
            title=("jobTitle", "title"),
            company=("companyName",),
            location=("location", "city"),
            description=("jobDescription",),
            category=("jobCategory",),
            tags=("skills", "tags"),
            remote=("isRemote",),
            salary_min=("salaryMin",),
            salary_max=("salaryMax",),
            published_at=("datePosted",),
            external_url=("jobUrl", "url"),
        )),
    ),
    JsonProviderDefinition(
        id="indeed-fr",
        label="Indeed France",
        language="fr",
        default_category="marketing",
        items_path=("results",),
        map_item=_mapper(FieldMap(
            external_id=("jobkey", "id"),
            title=("jobtitle", "title"),
            company=("company",),
            location=("formattedLocation", "location"),
            description=("snippet", "description"),
            category=("jobtype", "category"),
            tags=("skills", "tags"),
            remote=("remote",),
            salary_min=("salaryMin",),
            salary_max=("salaryMax",),
            published_at=("date",),
            external_url=("url",),
        )),
    ),
    JsonProviderDefinition(
        id="talent-io",
        label="talent.io",
        language="fr",
        default_category="engineering",
        items_path=("jobs",),
        map_item=_mapper(FieldMap(
            external_id=("id", "slug"),
            title=("title",),
            company=("company", "startup"),
            location=("city", "location"),
            description=("description",),
            category=("discipline", "category"),
            tags=("stack", "skills"),
            remote=("remote",),
            salary_min=("salaryMin", "minSalary"),
            salary_max=("salaryMax", "maxSalary"),
            published_at=("publishedAt",),
            external_url=("url",),
        )),
    ),
]


# ---------------------------------------------------------------------------
# Public boards
# ---------------------------------------------------------------------------


def _map_headhunter(record: dict[str, Any]) -> ProviderJob | None:
    job = build_provider_job(record, _HEADHUNTER_FIELDS)
    if job is None:
        return None
    # hh.ru encodes remote work as a schedule id rather than a flag.
    return job.model_copy(update={"remote": read_value(record, "schedule.id") == "remote"})


_HEADHUNTER_FIELDS = FieldMap(
    external_id=("id",),
    title=("name",),
    company=("employer.name",),
    location=("area.name",),
    description=("snippet.responsibility", "snippet.requirement"),
    salary_min=("salary.from",),
    salary_max=("salary.to",),
    published_at=("published_at", "created_at"),
    external_url=("alternate_url",),
)


def _map_torre(record: dict[str, Any]) -> ProviderJob | None:
    organizations = record.get("organizations")
    if isinstance(organizations, list) and organizations and isinstance(organizations[0], dict):
        record = {**record, "organization": organizations[0]}
    locations = record.get("locations")
    if isinstance(locations, list):
        record = {**record, "location": ", ".join(filter(None, map(string_from, locations)))}
    skills = record.get("skills")
    if isinstance(skills, list):
        record = {**record, "skill_names": [s.get("name") for s in skills if isinstance(s, dict)]}
    job = build_provider_job(record, _TORRE_FIELDS)
    if job is None:
        return None
    if job.external_url:
        return job
    return job.model_copy(update={"external_url": f"https://torre.ai/post/{job.external_id}"})


_TORRE_FIELDS = FieldMap(
    external_id=("id",),
    title=("objective",),
    company=("organization.name",),
    location=("location",),
    description=("tagline",),
    category=("type",),
    tags=("skill_names",),
    remote=("remote",),
    salary_min=("compensation.data.minAmount",),
    salary_max=("compensation.data.maxAmount",),
    published_at=("created",),
    external_url=("externalUrl",),
)


def _map_themuse(record: dict[str, Any]) -> ProviderJob | None:
    locations = record.get("locations")
    names = [loc.get("name") for loc in locations if isinstance(loc, dict)] if isinstance(locations, list) else []
    categories = record.get("categories")
    category_names = (
        [c.get("name") for c in categories if isinstance(c, dict)] if isinstance(categories, list) else []
    )
    flattened = {
        **record,
        "location_names": ", ".join(filter(None, map(string_from, names))),
        "category_names": category_names,
        "category_name": category_names[0] if category_names else None,
    }
    job = build_provider_job(flattened, _THEMUSE_FIELDS)
    if job is None:
        return None
    remote = any("remote" in (string_from(name) or "").lower() for name in names)
    return job.model_copy(update={"remote": remote})


_THEMUSE_FIELDS = FieldMap(
    external_id=("id",),
    title=("name",),
    company=("company.name",),
    location=("location_names",),
    description=("contents",),
    category=("category_name",),
    tags=("category_names",),
    published_at=("publication_date",),
    external_url=("refs.landing_page",),
)


PUBLIC_DEFINITIONS: list[JsonProviderDefinition] = [
    JsonProviderDefinition(
        id="arbeitnow",
        label="Arbeitnow",
        language="en",
        default_category="engineering",
        endpoint="https://www.arbeitnow.com/api/job-board-api",
        items_path=("data",),
        build_query=_page_query(),
        max_batch_size=100,
        pagination=ProviderPagination(start_page=1, max_pages=5),
        map_item=_mapper(FieldMap(
            external_id=("slug", "url"),
            title=("title",),
            company=("company_name",),
            location=("location",),
            description=("description",),
            tags=("tags", "job_types"),
            remote=("remote",),
            published_at=("created_at",),
            external_url=("url",),
            epoch_seconds=True,
        )),
    ),
    JsonProviderDefinition(
        id="jobicy",
        label="Jobicy",
        language="en",
        default_category="engineering",
        endpoint="https://jobicy.com/api/v2/remote-jobs",
        items_path=("jobs",),
        build_query=_limit_query("count", cap=100),
        max_batch_size=100,
        map_item=_mapper(FieldMap(
            external_id=("id",),
            title=("jobTitle",),
            company=("companyName",),
            location=("jobGeo",),
            description=("jobExcerpt", "jobDescription"),
            category=("jobIndustry",),
            tags=("jobIndustry", "jobType"),
            salary_min=("annualSalaryMin", "salaryMin"),
            salary_max=("annualSalaryMax", "salaryMax"),
            published_at=("pubDate",),
            external_url=("url",),
            remote_default=True,
        )),
    ),
    JsonProviderDefinition(
        id="remoteok",
        label="RemoteOK",
        language="en",
        default_category="engineering",
        endpoint="https://remoteok.com/api",
        headers=lambda _settings: {"Accept": "application/json"},
        map_item=_mapper(FieldMap(
            external_id=("id", "slug"),
            title=("position", "title"),
            company=("company",),
            location=("location",),
            description=("description",),
            tags=("tags",),
            salary_min=("salary_min",),
            salary_max=("salary_max",),
            published_at=("epoch", "date"),
            external_url=("url", "apply_url"),
            epoch_seconds=True,
            remote_default=True,
            location_default="Remote",
        )),
    ),
    JsonProviderDefinition(
        id="thehub",
        label="The Hub",
        language="en",
        default_category="engineering",
        endpoint="https://thehub.io/api/jobs",
        items_path=("docs",),
        build_query=_page_query(),
        # Fixed server-side page size.
        max_batch_size=15,
        pagination=ProviderPagination(start_page=1, max_pages=5),
        map_item=_mapper(FieldMap(
            external_id=("id", "key"),
            title=("title",),
            company=("company.name",),
            location=("location.address", "location.locality"),
            description=("description",),
            category=("jobPositionTypes",),
            tags=("jobRoles", "jobPositionTypes"),
            remote=("isRemote",),
            published_at=("publishedAt", "createdAt"),
            external_url=("url",),
        )),
    ),
    JsonProviderDefinition(
        id="weworkremotely",
        label="We Work Remotely (RSS)",
        language="en",
        default_category="engineering",
        # RSS-to-JSON bridge; the feed URL travels in the endpoint's own query.
        endpoint=(
            "https://api.rss2json.com/v1/api.json"
            "?rss_url=https%3A%2F%2Fweworkremotely.com%2Fremote-jobs.rss"
        ),
        items_path=("items",),
        map_item=_mapper(FieldMap(
            external_id=("guid", "link"),
            title=("title",),
            company=("author",),
            location=("region",),
            description=("description", "content"),
            category=("categories",),
            tags=("categories",),
            published_at=("pubDate",),
            external_url=("link",),
            remote_default=True,
            location_default="Remote",
        )),
    ),
    JsonProviderDefinition(
        id="hackernews-jobs",
        label="Hacker News Jobs",
        language="en",
        default_category="engineering",
        endpoint="https://hn.algolia.com/api/v1/search_by_date",
        query={"tags": "job"},
        build_query=lambda context: {"hitsPerPage": context.limit, "page": context.page},
        items_path=("hits",),
        max_batch_size=50,
        pagination=ProviderPagination(start_page=0, max_pages=4),
        map_item=_mapper(FieldMap(
            external_id=("objectID",),
            title=("title",),
            description=("story_text", "job_text"),
            published_at=("created_at_i", "created_at"),
            external_url=("url",),
            epoch_seconds=True,
        )),
    ),
    JsonProviderDefinition(
        id="headhunter",
        label="HeadHunter",
        language="ru",
        default_category="engineering",
        endpoint="https://api.hh.ru/vacancies",
        headers=lambda _settings: {"HH-User-Agent": "jobhub/0.1"},
        build_query=_page_query(limit_key="per_page"),
        items_path=("items",),
        max_batch_size=100,
        pagination=ProviderPagination(start_page=0, max_pages=5),
        map_item=_map_headhunter,
    ),
    JsonProviderDefinition(
        id="torre",
        label="Torre",
        language="en",
        default_category="product",
        endpoint="https://search.torre.co/opportunities/_search",
        method="POST",
        build_query=lambda context: {
            "size": context.limit,
            "offset": (context.page or 0) * (context.limit or 0),
        },
        body={"and": [{"status": {"code": "open"}}]},
        items_path=("results",),
        max_batch_size=50,
        pagination=ProviderPagination(start_page=0, max_pages=4),
        map_item=_map_torre,
    ),
    JsonProviderDefinition(
        id="zippia",
        label="Zippia",
        language="en",
        default_category="operations",
        endpoint="https://www.zippia.com/api/jobs/",
        method="POST",
        body=lambda context: {
            "fetchJobDesc": True,
            "locations": [],
            "numJobs": context.limit or 20,
            "previousListingHashes": [],
        },
        items_path=("jobs",),
        max_batch_size=20,
        map_item=_mapper(FieldMap(
            external_id=("jobId", "listingHash"),
            title=("jobTitle",),
            company=("companyName",),
            location=("location",),
            description=("jobDescription", "shortDesc"),
            category=("jobLevels",),
            tags=("skillsets", "jobTags"),
            remote=("remote",),
            salary_min=("estimatedSalaryLow",),
            salary_max=("estimatedSalaryHigh",),
            published_at=("postingDate",),
            external_url=("OBJurl", "jobURL"),
        )),
    ),
    JsonProviderDefinition(
        id="themuse",
        label="The Muse",
        language="en",
        default_category="product",
        endpoint="https://www.themuse.com/api/public/jobs",
        build_query=_page_query(),
        items_path=("results",),
        max_batch_size=20,
        pagination=ProviderPagination(start_page=0, max_pages=5),
        map_item=_map_themuse,
    ),
]

JSON_DEFINITIONS: list[JsonProviderDefinition] = FRENCH_DEFINITIONS + PUBLIC_DEFINITIONS


# ---------------------------------------------------------------------------
# Webhook partners: (id, label, default_category, language)
# ---------------------------------------------------------------------------

WEBHOOK_ENTRIES: list[tuple[str, str, str, str]] = [
    ("indeed-us", "Indeed US", "engineering", "en"),
    ("indeed-uk", "Indeed UK", "engineering", "en"),
    ("indeed-de", "Indeed Deutschland", "engineering", "de"),
    ("indeed-es", "Indeed España", "engineering", "es"),
    ("indeed-it", "Indeed Italia", "engineering", "it"),
    ("indeed-nl", "Indeed Nederland", "engineering", "nl"),
    ("glassdoor-fr", "Glassdoor France", "engineering", "fr"),
    ("glassdoor-uk", "Glassdoor UK", "engineering", "en"),
    ("glassdoor-de", "Glassdoor Deutschland", "engineering", "de"),
    ("glassdoor-us", "Glassdoor US", "engineering", "en"),
    ("linkedin-fr", "LinkedIn France", "product", "fr"),
    ("linkedin-de", "LinkedIn Deutschland", "product", "de"),
    ("linkedin-es", "LinkedIn España", "product", "es"),
    ("linkedin-uk", "LinkedIn UK", "product", "en"),
    ("stepstone-de", "StepStone Deutschland", "engineering", "de"),
    ("stepstone-nl", "StepStone Nederland", "engineering", "nl"),
    ("stepstone-be", "StepStone Belgique", "engineering", "fr"),
    ("reed-uk", "Reed", "operations", "en"),
    ("totaljobs-uk", "Totaljobs", "operations", "en"),
    ("jobserve-uk", "JobServe", "engineering", "en"),
    ("irishjobs-ie", "IrishJobs", "operations", "en"),
    ("seek-au", "SEEK Australia", "operations", "en"),
    ("seek-nz", "SEEK New Zealand", "operations", "en"),
    ("jobstreet-sg", "JobStreet Singapore", "engineering", "en"),
    ("jobstreet-my", "JobStreet Malaysia", "engineering", "ms"),
    ("jobstreet-ph", "JobStreet Philippines", "engineering", "en"),
    ("jobstreet-id", "JobStreet Indonesia", "engineering", "id"),
    ("jobstreet-vn", "JobStreet Vietnam", "engineering", "vi"),
    ("infojobs-es", "InfoJobs España", "operations", "es"),
    ("infojobs-it", "InfoJobs Italia", "operations", "it"),
    ("catho-br", "Catho", "operations", "pt"),
    ("gupy-br", "Gupy", "operations", "pt"),
    ("bumeran-ar", "Bumeran Argentina", "operations", "es"),
    ("bumeran-pe", "Bumeran Perú", "operations", "es"),
    ("computrabajo-mx", "Computrabajo México", "operations", "es"),
    ("computrabajo-co", "Computrabajo Colombia", "operations", "es"),
    ("elempleo-co", "elempleo.com", "operations", "es"),
    ("workana-latam", "Workana", "engineering", "es"),
    ("pracuj-pl", "Pracuj.pl", "engineering", "pl"),
    ("praca-sk", "Praca.sk", "operations", "sk"),
    ("jobs-ch", "jobs.ch", "engineering", "de"),
    ("jobup-ch", "jobup.ch", "engineering", "fr"),
    ("eures-eu", "EURES", "operations", "en"),
    ("adzuna-uk", "Adzuna UK", "engineering", "en"),
    ("adzuna-fr", "Adzuna France", "engineering", "fr"),
    ("adzuna-au", "Adzuna Australia", "engineering", "en"),
    ("adzuna-ca", "Adzuna Canada", "engineering", "en"),
    ("adzuna-us", "Adzuna US", "engineering", "en"),
    ("wearedevelopers-de", "WeAreDevelopers", "engineering", "de"),
    ("stackshare-us", "StackShare", "engineering", "en"),
]
