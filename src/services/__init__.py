# Services for genius-chat: routing, chat sessions, video jobs
