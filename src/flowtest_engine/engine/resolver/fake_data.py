"""
Fake-data generation over a fixed, allow-listed taxonomy.

Generators are addressed as ``category.method`` and may take one argument
list, written the way test definitions write them:

    faker.person.firstName
    faker.number.int({"min": 1, "max": 100})
    faker.number.int({min: 1, max: 100})
    faker.helpers.arrayElement(['red', 'green', 'blue'])
    faker.string.alpha(8)

Each ``FakeDataResolver`` owns its own ``Faker`` instance, so seeding one
resolver never changes the values produced by another.
"""

from __future__ import annotations

import json
import logging
import re
import string
from collections.abc import Callable
from datetime import UTC
from typing import Any

from faker import Faker

from ..exceptions import FakeDataError

logger = logging.getLogger(__name__)

METHOD_CALL_PATTERN = re.compile(r"^([^(]+)\((.*)\)$", re.DOTALL)
_UNQUOTED_KEY = re.compile(r"([{,]\s*)([A-Za-z_]\w*)\s*:")

MAX_SAFE_INTEGER = 2**53 - 1

_PRODUCTS = tuple(
    "Chair Car Computer Keyboard Mouse Bike Ball Gloves Pants Shirt Table Shoes Hat Towels "
    "Soap Cheese".split()
)
_ADJECTIVES = tuple(
    "Small Ergonomic Rustic Intelligent Gorgeous Incredible Practical Sleek Refined "
    "Handcrafted Licensed Generic".split()
)
_MATERIALS = tuple(
    "Steel Wooden Concrete Plastic Cotton Granite Rubber Metal Soft Fresh Frozen Bronze".split()
)
_DEPARTMENTS = tuple(
    "Books Movies Music Games Electronics Computers Home Garden Tools Grocery Health Beauty "
    "Toys Kids Baby Clothing Shoes Jewelery Sports Outdoors Automotive Industrial".split()
)
_DB_ENGINES = ("InnoDB", "MyISAM", "MEMORY", "CSV", "BLACKHOLE", "ARCHIVE")
_DB_TYPES = tuple(
    "int varchar text date datetime tinyint time timestamp smallint mediumint bigint decimal "
    "float double real bit boolean serial blob binary enum set geometry point".split()
)


def _options(args: tuple[Any, ...]) -> dict[str, Any]:
    """First argument when it is an options object, else an empty dict."""
    if args and isinstance(args[0], dict):
        return args[0]
    return {}


def _bounds(args: tuple[Any, ...], default_min: float, default_max: float) -> tuple[Any, Any]:
    # number.int(10) means max=10; number.int({min, max}) sets both
    if args and isinstance(args[0], (int, float)) and not isinstance(args[0], bool):
        return default_min, args[0]
    options = _options(args)
    return options.get("min", default_min), options.get("max", default_max)


def _length(args: tuple[Any, ...], default: int) -> int:
    if args and isinstance(args[0], int) and not isinstance(args[0], bool):
        return args[0]
    return int(_options(args).get("length", default))


def _count(args: tuple[Any, ...], key: str, default: int) -> int:
    if args and isinstance(args[0], int) and not isinstance(args[0], bool):
        return args[0]
    return int(_options(args).get(key, default))


class FakeDataResolver:
    """
    Map ``category.method`` tokens to generated values.

    Example:
        resolver = FakeDataResolver(seed=42)
        resolver.generate("internet.email")
        resolver.generate("number.int", [{"min": 1, "max": 6}])
        resolver.parse_expression("faker.helpers.arrayElement(['a', 'b'])")
    """

    def __init__(
        self,
        locale: str | None = None,
        seed: int | None = None,
        faker: Faker | None = None,
    ):
        """
        Initialize resolver with its own Faker instance.

        Args:
            locale: Faker locale (e.g. "pt_BR"); Faker's default when None
            seed: Seed for reproducible values
            faker: Pre-built Faker instance (locale is ignored when given)
        """
        self.faker = faker or (Faker(locale) if locale else Faker())
        if seed is not None:
            self.faker.seed_instance(seed)
        self._generators = self._build_generators()

    def _build_generators(self) -> dict[str, Callable[..., Any]]:
        fake = self.faker

        def number_int(*args: Any) -> int:
            low, high = _bounds(args, 0, MAX_SAFE_INTEGER)
            return fake.random_int(min=int(low), max=int(high))

        def number_float(*args: Any) -> float:
            low, high = _bounds(args, 0.0, 1.0)
            digits = _options(args).get("fractionDigits")
            value = fake.random.uniform(float(low), float(high))
            return round(value, int(digits)) if digits is not None else value

        def decimal_string(default_min: float, default_max: float) -> Callable[..., str]:
            def generate(*args: Any) -> str:
                low, high = _bounds(args, default_min, default_max)
                value = fake.random.uniform(float(low), float(high))
                return f"{value:.{int(_options(args).get('dec', 2))}f}"

            return generate

        def chars(alphabet: str, default: int) -> Callable[..., str]:
            def generate(*args: Any) -> str:
                return "".join(fake.random_choices(alphabet, length=_length(args, default)))

            return generate

        def array_elements(items: list[Any], count: int | None = None) -> list[Any]:
            if count is None:
                count = fake.random_int(min=1, max=len(items)) if items else 0
            return fake.random_sample(items, length=min(count, len(items)))

        def shuffle(items: list[Any]) -> list[Any]:
            return fake.random.sample(list(items), len(items))

        def years(args: tuple[Any, ...]) -> int:
            return _count(args, "years", 1)

        def days(args: tuple[Any, ...]) -> int:
            return _count(args, "days", 1)

        def birthdate(*args: Any) -> Any:
            options = _options(args)
            return fake.date_of_birth(
                minimum_age=int(options.get("min", 18)), maximum_age=int(options.get("max", 80))
            )

        return {
            # Location
            "location.city": lambda: fake.city(),
            "location.country": lambda: fake.country(),
            "location.state": lambda: fake.state(),
            "location.streetAddress": lambda: fake.street_address(),
            "location.zipCode": lambda: fake.postcode(),
            # Person
            "person.firstName": lambda: fake.first_name(),
            "person.lastName": lambda: fake.last_name(),
            "person.fullName": lambda: fake.name(),
            "person.jobTitle": lambda: fake.job(),
            # Internet
            "internet.email": lambda: fake.email(),
            "internet.url": lambda: fake.url(),
            "internet.domainName": lambda: fake.domain_name(),
            "internet.userName": lambda: fake.user_name(),
            # Phone
            "phone.number": lambda: fake.phone_number(),
            # Date
            "date.past": lambda *a: fake.date_time_between(f"-{years(a)}y", "now", tzinfo=UTC),
            "date.future": lambda *a: fake.date_time_between("now", f"+{years(a)}y", tzinfo=UTC),
            "date.recent": lambda *a: fake.date_time_between(f"-{days(a)}d", "now", tzinfo=UTC),
            "date.soon": lambda *a: fake.date_time_between("now", f"+{days(a)}d", tzinfo=UTC),
            "date.birthdate": birthdate,
            # Datatype
            "datatype.datetime": lambda: fake.date_time(tzinfo=UTC),
            "datatype.boolean": lambda: fake.pybool(),
            # Lorem
            "lorem.word": lambda: fake.word(),
            "lorem.words": lambda *a: " ".join(fake.words(nb=_count(a, "count", 3))),
            "lorem.sentence": lambda *a: fake.sentence(nb_words=_count(a, "wordCount", 6)),
            "lorem.sentences": lambda *a: " ".join(fake.sentences(nb=_count(a, "count", 3))),
            "lorem.paragraph": lambda *a: fake.paragraph(nb_sentences=_count(a, "count", 3)),
            "lorem.text": lambda: fake.text(),
            # Number
            "number.int": number_int,
            "number.float": number_float,
            "number.bigInt": lambda *a: number_int(*(a or ({"max": 10**18},))),
            # String
            "string.alpha": chars(string.ascii_letters, 1),
            "string.alphanumeric": chars(string.ascii_letters + string.digits, 1),
            "string.numeric": chars(string.digits, 1),
            "string.uuid": lambda: fake.uuid4(),
            # Helpers
            "helpers.arrayElement": lambda items: fake.random_element(list(items)),
            "helpers.arrayElements": array_elements,
            "helpers.shuffle": shuffle,
            # Finance
            "finance.amount": decimal_string(0, 1000),
            "finance.currencyCode": lambda: fake.currency_code(),
            "finance.currencyName": lambda: fake.currency_name(),
            # Company
            "company.name": lambda: fake.company(),
            "company.catchPhrase": lambda: fake.catch_phrase(),
            # Commerce
            "commerce.product": lambda: fake.random_element(_PRODUCTS),
            "commerce.productName": lambda: " ".join(
                fake.random_element(words) for words in (_ADJECTIVES, _MATERIALS, _PRODUCTS)
            ),
            "commerce.price": decimal_string(1, 1000),
            "commerce.department": lambda: fake.random_element(_DEPARTMENTS),
            # Database
            "database.engine": lambda: fake.random_element(_DB_ENGINES),
            "database.type": lambda: fake.random_element(_DB_TYPES),
            # Git
            "git.branch": lambda: f"{fake.word()}-{fake.word()}",
            "git.commitHash": lambda: fake.sha1(),
            # System
            "system.fileName": lambda: fake.file_name(),
            "system.fileExt": lambda: fake.file_extension(),
            "system.mimeType": lambda: fake.mime_type(),
        }

    def available_methods(self) -> list[str]:
        """All allow-listed ``category.method`` tokens, sorted."""
        return sorted(self._generators)

    def has_method(self, method_path: str) -> bool:
        return method_path in self._generators

    def seed(self, seed: int | None = None) -> None:
        """Reseed this resolver's generator (``None`` for a random seed)."""
        self.faker.seed_instance(seed)

    def generate(self, method_path: str, args: list[Any] | None = None) -> Any:
        """
        Generate a value for ``category.method``.

        Args:
            method_path: Allow-listed token, e.g. "internet.email"
            args: Positional arguments for the generator

        Raises:
            FakeDataError: Unknown token, or the generator rejected its arguments
        """
        if method_path.count(".") != 1:
            raise FakeDataError(
                method_path, "Invalid method path, expected format 'category.method'"
            )

        generator = self._generators.get(method_path)
        if generator is None:
            raise FakeDataError(
                method_path,
                "Not an allow-listed generator. See available_methods() for the supported list",
            )

        try:
            value = generator(*(args or []))
        except (TypeError, ValueError, AttributeError, IndexError) as e:
            raise FakeDataError(method_path, f"Generation failed: {e}") from e

        logger.debug(f"Generated fake {method_path} → {value!r}")
        return value

    def parse_expression(self, expression: str) -> Any:
        """
        Resolve ``[faker.]category.method[(args)]``.

        Example:
            >>> resolver.parse_expression("faker.number.int({min: 5, max: 5})")
            5
        """
        clean = expression.strip()
        if clean.startswith("faker."):
            clean = clean[len("faker.") :]

        match = METHOD_CALL_PATTERN.match(clean)
        if not match:
            return self.generate(clean)

        method_path, args_text = match.group(1).strip(), match.group(2).strip()
        return self.generate(method_path, self.parse_arguments(args_text))

    @staticmethod
    def parse_arguments(args_text: str) -> list[Any]:
        """
        Parse a generator argument list.

        Tried in order: JSON, JSON with single quotes, JSON with bare object
        keys, comma-separated JSON values, and finally a bare string.
        """
        if not args_text:
            return []

        double_quoted = args_text.replace("'", '"')
        for candidate in (args_text, double_quoted, _UNQUOTED_KEY.sub(r'\1"\2":', double_quoted)):
            try:
                return [json.loads(candidate)]
            except json.JSONDecodeError:
                continue

        try:
            return list(json.loads(f"[{double_quoted}]"))
        except json.JSONDecodeError:
            return [args_text.strip("'\"")]
