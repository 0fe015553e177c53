"""Default NDA review checklist.

Loaded through ``ConfigurationManager.load_policy_rules`` like any other
checklist source, so the same validation applies.
"""

DEFAULT_NDA_CHECKLIST = [
    {
        "rule_id": "MUTUALITY-001",
        "name": "Mutuality of Protection",
        "description": (
            "NDAs should protect confidential information of both parties "
            "equally. One-way NDAs are disfavored."
        ),
        "acceptance_criteria": (
            "NDAs should protect confidential information of both parties equally.\n"
            "- PASS: Both parties have reciprocal confidentiality obligations\n"
            "- FAIL: Only one party has confidentiality obligations (one-way NDA)\n"
            "- Escalation: One-way NDAs require Legal approval except in very "
            "narrow circumstances (e.g., regulatory filings)"
        ),
        "severity": "SHOW_STOPPER",
    },
    {
        "rule_id": "EXCEPTIONS-001",
        "name": "Standard Exceptions to Confidentiality",
        "description": (
            "NDAs must recognize that certain categories of information should "
            "not be considered confidential."
        ),
        "acceptance_criteria": (
            "At minimum, exceptions must include:\n"
            "- Information already known to the receiving party before disclosure\n"
            "- Information independently developed by the receiving party\n"
            "- Information obtained from a third party lawfully and without breach "
            "of an obligation of confidentiality\n"
            "- Information publicly available without fault of the receiving party\n"
            '- "Approved in writing by the discloser"\n'
            "- FAIL: If any one of these exceptions is missing, Legal must assess "
            "risk before approval"
        ),
        "severity": "SHOW_STOPPER",
    },
    {
        "rule_id": "IP-001",
        "name": "Intellectual Property Rights",
        "description": (
            "The NDA must make clear that ownership of intellectual property "
            "remains with the original owner."
        ),
        "acceptance_criteria": (
            "The NDA must explicitly state no transfer of IP or implied license.\n"
            "- PASS: Clear statement that IP ownership remains with original owner\n"
            "- FAIL: Silence on ownership or language suggesting IP transfer\n"
            "- Escalation: Ambiguous or missing IP ownership clauses require Legal review"
        ),
        "severity": "SHOW_STOPPER",
    },
    {
        "rule_id": "TERM-001",
        "name": "Term of Confidentiality",
        "description": (
            "Confidentiality obligations must last for at least 12 months after "
            "the end of the NDA."
        ),
        "acceptance_criteria": (
            "Confidentiality obligations must last for at least 12 months after "
            "the end of the NDA.\n"
            "- PREFERRED: 2-3 years\n"
            "- NOT ACCEPTABLE: Obligations that expire upon termination of the NDA "
            "itself, or any period shorter than 12 months\n"
            "- Escalation: Duration less than 2 years but at least 1 year is "
            "preferred but negotiable"
        ),
        "severity": "NEGOTIABLE",
    },
    {
        "rule_id": "INDEMNITY-001",
        "name": "Indemnities",
        "description": "NDAs are not intended to create indemnity obligations.",
        "acceptance_criteria": (
            "NDAs should not contain indemnity provisions.\n"
            "- PASS: No indemnity clauses present\n"
            "- FAIL: Any provision requiring one party to indemnify the other\n"
            '- IMMEDIATE ESCALATION: Even "narrow" indemnities (e.g., for willful '
            "misconduct) complicate negotiations and should be avoided"
        ),
        "severity": "SHOW_STOPPER",
    },
    {
        "rule_id": "REMEDIES-001",
        "name": "Remedies",
        "description": (
            "It is acceptable for NDAs to allow for equitable remedies, but "
            "monetary penalties are not acceptable."
        ),
        "acceptance_criteria": (
            "Remedies clauses should allow equitable remedies (injunctions, "
            "specific performance).\n"
            "- PASS: Equitable remedies allowed\n"
            "- FAIL: Provisions specifying monetary penalties or liquidated damages\n"
            "- IMMEDIATE ESCALATION: Liquidated damages provisions require Legal review"
        ),
        "severity": "SHOW_STOPPER",
    },
    {
        "rule_id": "DATA-001",
        "name": "Data Protection References",
        "description": (
            "NDAs should not attempt to incorporate or reference data processing "
            "agreements or GDPR-specific terms."
        ),
        "acceptance_criteria": (
            "NDAs should not reference DPAs or GDPR-specific terms.\n"
            "- PASS: NDA is silent on data protection, or references separate DPA\n"
            "- FAIL: NDA attempts to incorporate DPA terms or GDPR-specific language\n"
            "- Escalation: If personal data is anticipated, a separate DPA must be executed"
        ),
        "severity": "NEGOTIABLE",
    },
    {
        "rule_id": "NON_SOLICIT-001",
        "name": "Non-Solicitation",
        "description": (
            "NDAs should not contain restrictions on recruiting or soliciting employees."
        ),
        "acceptance_criteria": (
            "NDAs should not contain employee recruiting restrictions.\n"
            "- PASS: No non-solicitation clauses\n"
            "- FAIL: Restrictions on recruiting or soliciting employees\n"
            "- Escalation: Recruiting restrictions must be handled separately in "
            "commercial agreements if necessary"
        ),
        "severity": "NEGOTIABLE",
    },
    {
        "rule_id": "JURISDICTION-001",
        "name": "Choice of Law and Jurisdiction",
        "description": (
            "Acceptable governing law/jurisdiction options are limited to "
            "specific jurisdictions."
        ),
        "acceptance_criteria": (
            "Acceptable governing law/jurisdiction:\n"
            "- Delaware (DE)\n"
            "- New York (NY)\n"
            "- California (CA)\n"
            "- England and Wales (UK)\n"
            "- Singapore (SG)\n"
            "- IMMEDIATE ESCALATION: Any other jurisdiction (e.g., France, Germany, "
            "Hong Kong) requires Legal approval"
        ),
        "severity": "SHOW_STOPPER",
    },
    {
        "rule_id": "MISC-001",
        "name": "Miscellaneous Provisions",
        "description": (
            "Entire Agreement, Amendments, and Counterparts provisions are generally "
            "acceptable, but some clauses should be flagged."
        ),
        "acceptance_criteria": (
            "Miscellaneous provisions review:\n"
            "- PASS: Entire Agreement, Amendments, and Counterparts provisions are acceptable\n"
            '- FLAG: Broad "no assignment" clauses that prevent corporate transactions '
            "(e.g., M&A, internal restructuring)\n"
            "- FLAG: Confidential information defined so broadly as to include "
            "residual knowledge in employees' unaided memory\n"
            "- Escalation: Problematic miscellaneous provisions require Legal review"
        ),
        "severity": "NEGOTIABLE",
    },
]
