"""A small Express + React project used by end-to-end tests."""

from __future__ import annotations

SAMPLE_FILES = {
    "package.json": """
        {
          "name": "sample-project",
          "scripts": {"start": "node server/index.js", "build": "vite build"},
          "dependencies": {"express": "^4.18.0", "react": "^18.2.0", "axios": "^1.6.0", "pg": "^8.11.0"}
        }
    """,
    "server/index.js": """
        const express = require('express');
        const usersRouter = require('./api/users');

        const app = express();
        app.use('/api', usersRouter);
        app.listen(3000);
    """,
    "server/api/users.js": """
        const express = require('express');
        const { getUsersFromDB } = require('../database/userService');
        const { authenticateToken } = require('../middleware/auth');
        const router = express.Router();

        // GET /api/users
        router.get('/users', authenticateToken, async (req, res) => {
          const users = await getUsersFromDB({ limit: parseInt(req.query.limit) });
          res.json({ users });
        });

        router.get('/users/:id', authenticateToken, async (req, res) => {
          const user = await getUsersFromDB({ id: parseInt(req.params.id) });
          if (!user) {
            return res.status(404).json({ error: 'User not found' });
          }
          res.json(user);
        });

        module.exports = router;
    """,
    "server/database/userService.js": """
        const db = require('./db');

        async function getUsersFromDB(options) {
          return db.query('SELECT * FROM users WHERE active = true');
        }

        module.exports = { getUsersFromDB };
    """,
    "server/middleware/auth.js": """
        function authenticateToken(req, res, next) {
          if (!req.headers.authorization) {
            return res.sendStatus(401);
          }
          next();
        }

        module.exports = { authenticateToken };
    """,
    "src/App.tsx": """
        import React, { useEffect, useState } from 'react';
        import axios from 'axios';
        import { UserList } from './components/UserList';

        export const App: React.FC = () => {
          const [users, setUsers] = useState([]);

          const fetchUsers = async () => {
            const response = await axios.get('/api/users');
            setUsers(response.data);
          };

          useEffect(() => {
            fetchUsers();
          }, []);

          return (
            <div className="app">
              <UserList users={users} />
            </div>
          );
        };
    """,
    "src/App.css": """
        .app { padding: 1rem; }
    """,
    "Dockerfile": """
        FROM node:20-alpine
        COPY . .
        RUN npm install
        CMD ["npm", "start"]
    """,
}

__all__ = ["SAMPLE_FILES"]
