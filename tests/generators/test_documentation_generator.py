"""Tests for DocumentationGenerator."""

from __future__ import annotations

from pathlib import Path

import pytest

from documentor.analyzer import CodebaseAnalyzer
from documentor.generators import DocumentationGenerator
from documentor.models import (
    CodebaseAnalysis,
    DatabaseQuery,
    FileInfo,
    FileType,
    GeneratedDocumentation,
    QueryOperation,
)
from tests._fixtures.repo_builder import RepoBuilder

TIMESTAMP = "2024-05-01T12:00:00Z"


@pytest.fixture
def documentation(sample_project: Path) -> GeneratedDocumentation:
    analysis = CodebaseAnalyzer().analyze(sample_project)
    return DocumentationGenerator(clock=lambda: TIMESTAMP).generate(analysis)


def test_overview_summarizes_project(documentation: GeneratedDocumentation) -> None:
    overview = documentation.overview

    assert overview.startswith("# sample-project\n")
    assert "Detected frameworks: Axios, Express, PostgreSQL, React." in overview
    assert "- 2 HTTP routes in 1 file" in overview
    assert "| route | 1 |" in overview
    assert "- `start`: `node server/index.js`" in overview
    assert documentation.generated_at == TIMESTAMP


def test_backend_documents_each_route(documentation: GeneratedDocumentation) -> None:
    backend = documentation.backend

    assert [group.file for group in backend.groups] == ["server/api/users.js"]
    assert [endpoint.path for endpoint in backend.endpoints] == ["/users", "/users/:id"]
    assert backend.middleware == ("authenticateToken",)
    assert "Served by Express." in backend.overview

    endpoint = backend.endpoints[0]
    assert endpoint.handler == "<inline>"
    assert endpoint.handler_linked is True
    assert endpoint.services == ("getUsersFromDB (server/database/userService.js)",)
    assert endpoint.purpose == "Handles GET /users with an inline handler; database: read users."
    assert [item.path for item in documentation.api_documentation] == ["/users", "/users/:id"]


def test_frontend_lists_ui_components(documentation: GeneratedDocumentation) -> None:
    frontend = documentation.frontend

    assert [component.name for component in frontend.components] == ["App"]
    (app,) = frontend.components
    assert app.api_calls == ("GET /api/users",)
    assert app.routes == ("GET /users",)
    assert app.unlinked_calls == ()
    assert [(group.directory, group.components) for group in frontend.groups] == [("src", ("App",))]
    assert frontend.overview.startswith("1 UI component across 1 directory.")


def test_database_groups_queries_by_table(documentation: GeneratedDocumentation) -> None:
    (table,) = documentation.database.tables

    assert table.name == "users"
    assert table.operations == ("read",)
    (query,) = table.queries
    assert query.file == "server/database/userService.js"
    assert query.line == 4
    assert query.function == "getUsersFromDB"


def test_user_flow_traces_component_to_query(documentation: GeneratedDocumentation) -> None:
    (flow,) = documentation.user_flows

    assert flow.name == "App flow"
    assert [step.kind for step in flow.steps] == ["component", "route", "query"]
    assert flow.steps[1].reference == "GET /users"
    assert flow.steps[2].reference == "server/database/userService.js:4"
    assert flow.steps[2].description == "GET /users performs a read on users"


def test_generation_is_deterministic(sample_project: Path) -> None:
    generator = DocumentationGenerator(clock=lambda: TIMESTAMP)

    first = generator.generate(CodebaseAnalyzer().analyze(sample_project))
    second = generator.generate(CodebaseAnalyzer().analyze(sample_project))

    assert first == second


def test_documentation_survives_dict_round_trip(documentation: GeneratedDocumentation) -> None:
    assert GeneratedDocumentation.from_dict(documentation.to_dict()) == documentation


def test_unknown_tables_sort_last() -> None:
    analysis = CodebaseAnalysis(
        root="/srv/app",
        project_name="app",
        files=(FileInfo(path="db.py", file_type=FileType.DATABASE, size=1, last_modified=0.0),),
        queries=(
            DatabaseQuery(file="db.py", operation=QueryOperation.WRITE, line=3),
            DatabaseQuery(file="db.py", operation=QueryOperation.DELETE, table="orders", line=5),
            DatabaseQuery(file="db.py", operation=QueryOperation.READ, table="orders", line=7),
        ),
    )

    database = DocumentationGenerator().database(analysis)

    assert [table.name for table in database.tables] == ["orders", "(unknown)"]
    assert database.tables[0].operations == ("read", "delete")
    assert database.overview == "3 database operations touching 1 known table."


def test_empty_project_produces_placeholder_sections() -> None:
    analysis = CodebaseAnalysis(root="/srv/empty", project_name="empty", files=())

    documentation = DocumentationGenerator(clock=lambda: TIMESTAMP).generate(analysis)

    assert documentation.frontend.overview == "No UI components were detected."
    assert documentation.backend.overview == "No HTTP routes were detected."
    assert documentation.database.overview == "No database access was detected."
    assert documentation.user_flows == ()
    assert documentation.api_documentation == ()


def _routed_app(repo_builder: RepoBuilder) -> Path:
    repo_builder.write(
        {
            "server/index.js": """
                const express = require('express');
                const db = require('./db');

                const app = express();

                app.post('/api/users', async (req, res) => {
                  await db.query('INSERT INTO users (name) VALUES ($1)', [req.body.name]);
                  res.status(201).end();
                });
            """,
            "client/src/App.jsx": """
                import { Routes, Route } from 'react-router-dom';
                import UserList from './pages/UserList';
                import NewUser from './pages/NewUser';

                export default function App() {
                  return (
                    <Routes>
                      <Route path="/users" element={<UserList />} />
                      <Route path="/users/new" element={<NewUser />} />
                    </Routes>
                  );
                }
            """,
            "client/src/pages/UserList.jsx": """
                import { Link } from 'react-router-dom';

                export default function UserList() {
                  return (
                    <div>
                      <Link to="/users/new">Add user</Link>
                    </div>
                  );
                }
            """,
            "client/src/pages/NewUser.jsx": """
                import { useNavigate } from 'react-router-dom';

                export default function NewUser() {
                  const navigate = useNavigate();

                  async function handleSubmit(event) {
                    event.preventDefault();
                    await fetch('/api/users', { method: 'POST' });
                    navigate('/users');
                  }

                  return (
                    <form onSubmit={handleSubmit}>
                      <button type="submit">Save</button>
                    </form>
                  );
                }
            """,
        }
    )
    return repo_builder.path()


def test_frontend_documents_pages_and_navigation(repo_builder: RepoBuilder) -> None:
    analysis = CodebaseAnalyzer().analyze(_routed_app(repo_builder))
    frontend = DocumentationGenerator(clock=lambda: TIMESTAMP).generate(analysis).frontend

    assert [(page.name, page.path, page.source, page.file) for page in frontend.pages] == [
        ("UserList", "/users", "router", "client/src/pages/UserList.jsx"),
        ("NewUser", "/users/new", "router", "client/src/pages/NewUser.jsx"),
    ]
    user_list, new_user = frontend.pages
    assert user_list.navigates_to == ("/users/new",)
    assert new_user.routes == ("POST /api/users",)
    assert new_user.navigates_to == ("/users",)

    assert [(item.source, item.target, item.method, item.target_page) for item in frontend.navigation] == [
        ("NewUser", "/users", "programmatic", "UserList"),
        ("UserList", "/users/new", "link", "NewUser"),
    ]
    (new_user_doc,) = [doc for doc in frontend.components if doc.name == "NewUser"]
    assert new_user_doc.events == ("<form> onSubmit -> handleSubmit",)
    assert "2 pages with 2 navigation links." in frontend.overview


def test_user_flow_starts_from_the_triggering_event(repo_builder: RepoBuilder) -> None:
    analysis = CodebaseAnalyzer().analyze(_routed_app(repo_builder))
    flows = DocumentationGenerator(clock=lambda: TIMESTAMP).user_flows(analysis)

    (flow,) = flows
    assert flow.name == "NewUser flow"
    assert [step.kind for step in flow.steps[:3]] == ["component", "interaction", "route"]
    interaction = flow.steps[1]
    assert interaction.reference == "<form> onSubmit"
    assert interaction.description == "User triggers onSubmit on <form>, handled by `handleSubmit`"
    assert flow.steps[2].reference == "POST /api/users"
