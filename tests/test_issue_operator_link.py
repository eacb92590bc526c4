from urllib.parse import parse_qs, urlparse

from formdesk.app.services.links import verify_token
from formdesk.issue_operator_link import main


class TestIssueOperatorLink:
    def test_prints_verifiable_link(self, capsys, mocker):
        mocker.patch("formdesk.issue_operator_link.Base.metadata.create_all")
        assert main(["alice"]) == 0
        link = next(line.split()[-1] for line in capsys.readouterr().out.splitlines() if line.startswith("Forms API"))
        token = parse_qs(urlparse(link).query)["t"][0]
        assert verify_token(token)["sub"] == "alice"

    def test_usage(self, capsys):
        assert main([]) == 2
        assert "usage" in capsys.readouterr().out
