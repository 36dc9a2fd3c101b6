import re

from spacecounter.errors import InvalidSpaceCode

# Valid space codes are 4-6 upper-case letters
SPACE_CODE_PATTERN = re.compile(r"^[A-Z]{4,6}$")


def is_valid_space_code(space_code: str) -> bool:
    return bool(SPACE_CODE_PATTERN.match(space_code))


def validate_space_code(space_code: str) -> str:
    if not is_valid_space_code(space_code):
        raise InvalidSpaceCode(space_code)
    return space_code
