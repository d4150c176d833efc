"""
Built-in checkpoint catalogue and context severity table.
"""

from ..models.checkpoint import Checkpoint, DetectorKind, DetectorSpec
from ..models.context import ContextRule, DeploymentContext, ProjectType, RuleAction
from ..models.severity import Severity

SOURCE_FILES = [
    "*.py",
    "*.js",
    "*.jsx",
    "*.ts",
    "*.tsx",
    "*.java",
    "*.go",
    "*.rb",
    "*.php",
    "*.cs",
]
MARKUP_FILES = ["*.html", "*.htm", "*.jsx", "*.tsx", "*.vue", "*.svelte"]


def default_checkpoints() -> list[Checkpoint]:
    """Create the default checkpoint catalogue."""
    return [
        Checkpoint(
            id="SEC-001",
            title="Hardcoded secret",
            description=(
                "A credential, API key or token is assigned as a string literal. "
                "Anyone with read access to the repository can use it."
            ),
            category="Secrets",
            default_severity=Severity.CRITICAL,
            detector=DetectorSpec(
                pattern=(
                    r"(?:api[_-]?key|secret|passwd|password|token|access[_-]?key)"
                    r"\w*\s*[:=]\s*[\"'][^\"'\s]{8,}[\"']"
                ),
                ignore_case=True,
                description="Secret-looking name assigned a string literal",
            ),
            recommendation=(
                "Move the value to a secret manager or environment variable and "
                "rotate the exposed credential."
            ),
            reference="https://cwe.mitre.org/data/definitions/798.html",
        ),
        Checkpoint(
            id="SEC-002",
            title="Private key committed to source",
            description="A PEM encoded private key block is present in the file.",
            category="Secrets",
            default_severity=Severity.CRITICAL,
            detector=DetectorSpec(
                pattern=r"-----BEGIN (?:RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----",
            ),
            recommendation="Remove the key, revoke it, and load keys from a vault.",
            reference="https://cwe.mitre.org/data/definitions/321.html",
        ),
        Checkpoint(
            id="INJ-001",
            title="SQL built by string formatting",
            description=(
                "A SQL statement is assembled with string concatenation or "
                "interpolation, allowing injection through user input."
            ),
            category="Injection",
            default_severity=Severity.HIGH,
            file_types=SOURCE_FILES,
            detector=DetectorSpec(
                pattern=(
                    r"(?:execute|query|raw)\s*\(\s*(?:f[\"']|[\"'][^\"']*"
                    r"(?:SELECT|INSERT|UPDATE|DELETE)\b[^\"']*[\"']\s*(?:\+|%))"
                ),
                ignore_case=True,
                description="Query call with f-string, concatenation or % formatting",
            ),
            recommendation="Use parameterised queries or the ORM's binding API.",
            reference="https://owasp.org/Top10/A03_2021-Injection/",
        ),
        Checkpoint(
            id="INJ-002",
            title="Dynamic code evaluation",
            description="eval or exec runs code built at runtime.",
            category="Injection",
            default_severity=Severity.HIGH,
            file_types=SOURCE_FILES,
            detector=DetectorSpec(
                pattern=r"(?<![\w.])(?:eval|exec)\s*\(",
                description="Calls to eval( or exec(",
            ),
            recommendation=(
                "Replace dynamic evaluation with explicit parsing or a dispatch table."
            ),
            reference="https://cwe.mitre.org/data/definitions/95.html",
        ),
        Checkpoint(
            id="INJ-003",
            title="Shell command with shell=True",
            description="A subprocess is started through the shell.",
            category="Injection",
            default_severity=Severity.HIGH,
            file_types=["*.py"],
            detector=DetectorSpec(pattern=r"subprocess\.\w+\([^)]*shell\s*=\s*True"),
            recommendation="Pass an argument list and leave shell=False.",
            reference="https://cwe.mitre.org/data/definitions/78.html",
        ),
        Checkpoint(
            id="CRY-001",
            title="TLS certificate verification disabled",
            description="HTTPS requests are made without verifying certificates.",
            category="Cryptography",
            default_severity=Severity.HIGH,
            file_types=SOURCE_FILES,
            detector=DetectorSpec(
                pattern=(
                    r"verify\s*=\s*False|rejectUnauthorized\s*:\s*false"
                    r"|InsecureSkipVerify\s*:\s*true"
                ),
            ),
            recommendation="Keep certificate verification on; trust a private CA instead.",
            reference="https://cwe.mitre.org/data/definitions/295.html",
        ),
        Checkpoint(
            id="CRY-002",
            title="Weak hash algorithm",
            description="MD5 or SHA-1 is used, which is unsuitable for security uses.",
            category="Cryptography",
            default_severity=Severity.MEDIUM,
            file_types=SOURCE_FILES,
            detector=DetectorSpec(
                pattern=r"\b(?:md5|sha1)\s*\(|createHash\(\s*[\"'](?:md5|sha1)[\"']",
                ignore_case=True,
            ),
            recommendation="Use SHA-256 or better, or a password hashing function.",
            reference="https://cwe.mitre.org/data/definitions/328.html",
        ),
        Checkpoint(
            id="NET-001",
            title="Plain HTTP URL",
            description="A non-local URL uses unencrypted HTTP.",
            category="Transport Security",
            default_severity=Severity.MEDIUM,
            file_types=SOURCE_FILES,
            detector=DetectorSpec(
                pattern=r"[\"']http://(?!localhost|127\.0\.0\.1|0\.0\.0\.0)[^\"'\s]+[\"']",
            ),
            recommendation="Use https:// for every remote endpoint.",
        ),
        Checkpoint(
            id="A11Y-001",
            title="Image without alt text",
            description="An <img> element has no alt attribute for screen readers.",
            category="Accessibility",
            default_severity=Severity.MEDIUM,
            file_types=MARKUP_FILES,
            detector=DetectorSpec(
                pattern=r"<img\b(?![^>]*\balt\s*=)[^>]*>",
                ignore_case=True,
            ),
            recommendation=(
                'Add an alt attribute describing the image, or alt="" if it is '
                "decorative."
            ),
            reference="https://www.w3.org/WAI/tutorials/images/",
        ),
        Checkpoint(
            id="LOG-001",
            title="Debug output left in code",
            description="print or console.log statements used for debugging.",
            category="Logging",
            default_severity=Severity.LOW,
            file_types=SOURCE_FILES,
            detector=DetectorSpec(pattern=r"^[ \t]*(?:print\(|console\.log\()"),
            recommendation="Use the project logger at an appropriate level.",
        ),
        Checkpoint(
            id="ERR-001",
            title="Broad exception handler",
            description="Every exception is caught, hiding unexpected failures.",
            category="Error Handling",
            default_severity=Severity.LOW,
            file_types=["*.py"],
            detector=DetectorSpec(pattern=r"^[ \t]*except[ \t]*(?:Exception[ \t]*)?:"),
            recommendation="Catch the specific exceptions the block can handle.",
        ),
        Checkpoint(
            id="MNT-001",
            title="Unresolved TODO marker",
            description="A TODO or FIXME comment marks unfinished work.",
            category="Maintainability",
            default_severity=Severity.INFO,
            file_types=SOURCE_FILES,
            detector=DetectorSpec(pattern=r"(?:#|//)\s*(?:TODO|FIXME)\b"),
            recommendation="Track the work in the issue tracker or finish it.",
        ),
        Checkpoint(
            id="LIC-001",
            title="Missing licence header",
            description="The source file carries no SPDX licence identifier.",
            category="Licensing",
            default_severity=Severity.LOW,
            file_types=SOURCE_FILES,
            detector=DetectorSpec(
                kind=DetectorKind.ABSENCE,
                pattern=r"SPDX-License-Identifier:",
            ),
            recommendation="Add an SPDX-License-Identifier comment to the file header.",
            reference="https://spdx.dev/learn/handling-license-info/",
        ),
        Checkpoint(
            id="LIC-002",
            title="Dependency licence compatibility",
            description=(
                "Dependency licences cannot be resolved from the manifest alone. "
                "Copyleft licences may conflict with the project's distribution terms."
            ),
            category="Licensing",
            default_severity=Severity.LOW,
            file_types=[
                "requirements*.txt",
                "pyproject.toml",
                "package.json",
                "go.mod",
                "Cargo.toml",
                "pom.xml",
            ],
            detector=DetectorSpec(
                kind=DetectorKind.MANUAL,
                description="Licence data is not present in dependency manifests",
            ),
            recommendation=(
                "Run a licence scanner over the resolved dependency tree and "
                "review any copyleft licences."
            ),
        ),
    ]


def default_context_rules() -> list[ContextRule]:
    """Create the default context severity table."""
    return [
        ContextRule(
            name="copyleft-in-proprietary",
            checkpoint_ids=("LIC-002",),
            project_type=ProjectType.PROPRIETARY,
            action=RuleAction.ESCALATE,
        ),
        ContextRule(
            name="copyleft-in-open-source",
            checkpoint_ids=("LIC-002",),
            project_type=ProjectType.OPEN_SOURCE,
            action=RuleAction.DEESCALATE,
        ),
        ContextRule(
            name="licence-header-in-open-source",
            checkpoint_ids=("LIC-001",),
            project_type=ProjectType.OPEN_SOURCE,
            action=RuleAction.ESCALATE,
        ),
        ContextRule(
            name="secrets-in-production",
            categories=("Secrets",),
            deployment=DeploymentContext.PRODUCTION,
            action=RuleAction.FLOOR,
            target=Severity.HIGH,
        ),
        ContextRule(
            name="debug-output-internal-tool",
            categories=("Logging", "Error Handling"),
            deployment=DeploymentContext.INTERNAL_TOOL,
            action=RuleAction.DEESCALATE,
        ),
        ContextRule(
            name="plain-http-internal-tool",
            categories=("Transport Security",),
            deployment=DeploymentContext.INTERNAL_TOOL,
            action=RuleAction.DEESCALATE,
        ),
        ContextRule(
            name="broad-except-in-production",
            checkpoint_ids=("ERR-001",),
            deployment=DeploymentContext.PRODUCTION,
            action=RuleAction.FLOOR,
            target=Severity.MEDIUM,
        ),
    ]
